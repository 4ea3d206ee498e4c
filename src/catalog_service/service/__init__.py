"""Catalog, cart and real-time services used by the HTTP app."""

from .broadcaster import ChangeBroadcaster
from .cart_store import CartStore
from .catalog_manager import CatalogManager
from .product_store import ProductStore, StoreError
from .results import OperationResult, ResultStatus

__all__ = [
    "CartStore",
    "CatalogManager",
    "ChangeBroadcaster",
    "OperationResult",
    "ProductStore",
    "ResultStatus",
    "StoreError",
]
