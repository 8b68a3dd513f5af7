"""discountsync - unified entry point.

Run the engine until interrupted (default):
    python -m discountsync

Insert one product and exit:
    python -m discountsync insert --name Tea --price 3.50 --code T1 --discount
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys

from dotenv import load_dotenv


def setup_logging(level: str = "INFO"):
    """Setup logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


async def run(config) -> None:
    """Run the engine until SIGINT/SIGTERM, then run the shutdown hook."""
    from .engine import SyncEngine

    logger = logging.getLogger(__name__)
    engine = SyncEngine.from_config(config)

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _shutdown_handler():
        logger.info("Shutdown signal received, stopping engine...")
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _shutdown_handler)

    engine.start()
    try:
        await stop_event.wait()
    finally:
        logger.info(
            f"Final state: counter={engine.counter}, products={len(engine.products)}"
        )
        await engine.shutdown()


async def insert_once(config, args) -> bool:
    """Submit a single product through the insertion gateway."""
    from .engine import SyncEngine
    from .models import ProductForm

    logger = logging.getLogger(__name__)
    engine = SyncEngine.from_config(config)
    form = ProductForm(
        name=args.name,
        price=args.price,
        code=args.code,
        discount=args.discount,
    )
    try:
        result = await engine.insert(form)
    finally:
        # A one-off insert is not a session: keep the persisted list.
        await engine.client.close()

    if result.ok:
        logger.info(f"Inserted {result.product.code}")
    else:
        logger.error(f"Insert failed: {result.error}")
    return result.ok


def main():
    """CLI entry point."""
    load_dotenv()

    parser = argparse.ArgumentParser(description="discountsync - discount product sync client")
    parser.add_argument(
        "--base-url",
        default=None,
        help="Product service URL (default: DISCOUNTSYNC_BASE_URL env or http://localhost:8080)",
    )
    parser.add_argument(
        "--storage",
        default=None,
        help="JSON file for persisted state (default: DISCOUNTSYNC_STORAGE_PATH env, in-memory)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: LOG_LEVEL env or INFO)",
    )

    subparsers = parser.add_subparsers(dest="command")
    insert = subparsers.add_parser("insert", help="Insert one product and exit")
    insert.add_argument("--name", required=True)
    insert.add_argument("--price", required=True)
    insert.add_argument("--code", required=True)
    insert.add_argument("--discount", action="store_true")

    args = parser.parse_args()

    from .config import get_config

    config = get_config()
    overrides = {}
    if args.base_url:
        overrides["base_url"] = args.base_url
    if args.storage:
        overrides["storage_path"] = args.storage
    if args.log_level:
        overrides["log_level"] = args.log_level
    if overrides:
        config = config.model_copy(update=overrides)

    setup_logging(config.log_level)
    logger = logging.getLogger(__name__)

    if args.command == "insert":
        ok = asyncio.run(insert_once(config, args))
        sys.exit(0 if ok else 1)

    try:
        asyncio.run(run(config))
    except KeyboardInterrupt:
        logger.info("Shutting down...")
        sys.exit(0)


if __name__ == "__main__":
    main()
