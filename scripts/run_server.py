"""Serve the catalog HTTP API, views and real-time channel with uvicorn."""
from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT))

import uvicorn

from catalog_service.config import load_config


def parse_args() -> argparse.Namespace:
    defaults = load_config()
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--store",
        type=Path,
        default=defaults.product_store_path,
        help="Path to the JSON file holding the product list.",
    )
    parser.add_argument("--host", default=defaults.host)
    parser.add_argument("--port", type=int, default=defaults.port)
    parser.add_argument("--log-level", default=defaults.log_level)
    parser.add_argument("--reload", action="store_true", help="Restart on code changes (development).")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    # app.main builds its app from the environment at import time.
    os.environ["PRODUCT_STORE_PATH"] = str(args.store)
    os.environ["LOG_LEVEL"] = args.log_level.upper()
    print("Serving catalog from", args.store, f"on http://{args.host}:{args.port}")
    uvicorn.run(
        "app.main:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
        reload=args.reload,
    )


if __name__ == "__main__":
    main()
