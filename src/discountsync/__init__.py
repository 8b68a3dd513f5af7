"""
discountsync - client-side synchronization of discounted products.

Keeps a local product list and discount counter consistent with a remote
product service through two polling channels:
- LongPollChannel: back-to-back long polls accumulating the discount counter
- ShortPollChannel: fixed-interval polls merging new products

Usage:
    from discountsync import SyncEngine, get_config

    async with SyncEngine.from_config(get_config()) as engine:
        ...
"""

__version__ = "0.1.0"

from .client import ProductServiceClient
from .config import PollingConfig, SyncConfig, get_config
from .engine import SyncEngine
from .models import InsertionResult, Product, ProductForm, ShortPollResult
from .storage import JsonFileStorage, KeyValueStorage, MemoryStorage

__all__ = [
    "__version__",
    # Engine
    "SyncEngine",
    "ProductServiceClient",
    # Config
    "SyncConfig",
    "PollingConfig",
    "get_config",
    # Models
    "Product",
    "ProductForm",
    "InsertionResult",
    "ShortPollResult",
    # Storage
    "KeyValueStorage",
    "MemoryStorage",
    "JsonFileStorage",
]
