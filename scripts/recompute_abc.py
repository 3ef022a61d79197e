#!/usr/bin/env python3
"""
Recompute the profit-based ABC classification of a store's products.

Usage:
    python3 scripts/recompute_abc.py --store-id <uuid> [--lookback-days 180] [options]
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from uuid import UUID

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Recompute ABC classification from attributed sales profit.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--store-id", required=True, type=UUID, help="Store to classify.")
    parser.add_argument(
        "--lookback-days",
        type=int,
        default=None,
        help="Sales window in days (default: classification.lookback_days).",
    )
    parser.add_argument(
        "--db-url",
        default=None,
        help="Database URL (default: settings database.url / DATABASE_URL).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Settings YAML file (default: $INVENTORY_CONFIG or packaged defaults).",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    if args.lookback_days is not None and args.lookback_days <= 0:
        print("ERROR: --lookback-days must be positive", file=sys.stderr)
        return 1

    from inventory_config import load_settings
    from inventory_kernel.db.engine import init_engine_from_url, session_scope
    from inventory_kernel.db.immutability import register_immutability_listeners
    from inventory_kernel.logging_config import configure_logging
    from inventory_modules.classification import (
        AbcClassificationService,
        ClassificationConfig,
    )

    settings = load_settings(args.config)
    configure_logging(level=settings.logging.level.upper())
    init_engine_from_url(args.db_url or settings.database.url)
    register_immutability_listeners()

    config = ClassificationConfig.from_dict(settings.classification)
    with session_scope() as session:
        result = AbcClassificationService(session, config=config).recompute(
            args.store_id, lookback_days=args.lookback_days
        )

    print(f"Window start: {result.since.isoformat()}")
    print(f"Ranked:  {result.ranked_products}")
    print(f"Class A: {result.count_a}")
    print(f"Class B: {result.count_b}")
    print(f"Class C: {result.count_c}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
