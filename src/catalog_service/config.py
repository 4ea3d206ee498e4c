"""Runtime configuration for the catalog service."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


DEFAULT_STORE_PATH = Path("data/products.json")
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080


def _resolve_store_path() -> Path:
    configured = os.environ.get("PRODUCT_STORE_PATH")
    if configured:
        return Path(configured)
    return DEFAULT_STORE_PATH


def _resolve_port() -> int:
    configured = os.environ.get("CATALOG_PORT")
    if configured:
        return int(configured)
    return DEFAULT_PORT


@dataclass
class ServiceConfig:
    """Settings shared by the HTTP app and the launcher script."""

    product_store_path: Path = DEFAULT_STORE_PATH
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"


def load_config() -> ServiceConfig:
    return ServiceConfig(
        product_store_path=_resolve_store_path(),
        host=os.environ.get("CATALOG_HOST") or DEFAULT_HOST,
        port=_resolve_port(),
        log_level=(os.environ.get("LOG_LEVEL") or "INFO").upper(),
    )
