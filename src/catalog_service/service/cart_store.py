"""In-memory shopping carts referencing catalog products."""
from __future__ import annotations

import logging
import random
from threading import Lock
from typing import Dict, Optional

from ..data.records import CartItem, CartRecord
from .catalog_manager import CatalogManager
from .results import OperationResult


logger = logging.getLogger(__name__)

MAX_CART_ID = 999_999


class CartStore:
    """Process-local carts; nothing here survives a restart.

    Cart creation and line updates are read-modify-write steps, so both run
    under one lock to keep a single line per product in each cart.
    """

    def __init__(self, catalog: CatalogManager, rng: Optional[random.Random] = None) -> None:
        self.catalog = catalog
        self._carts: Dict[str, CartRecord] = {}
        self._rng = rng or random.Random()
        self._lock = Lock()

    def create(self) -> CartRecord:
        with self._lock:
            cart_id = self._new_id()
            while cart_id in self._carts:
                cart_id = self._new_id()
            cart = CartRecord(id=cart_id)
            self._carts[cart_id] = cart
        logger.info("Created cart %s", cart_id)
        return cart

    def get(self, cart_id: str) -> Optional[CartRecord]:
        return self._carts.get(cart_id)

    def add_item(self, cart_id: str, product_id: int, quantity: int = 1) -> OperationResult:
        if quantity < 1:
            return OperationResult.validation_error("Quantity must be at least 1")

        with self._lock:
            cart = self.get(cart_id)
            if cart is None or self.catalog.get(product_id) is None:
                logger.info("Cart %s or product %s not found", cart_id, product_id)
                return OperationResult.not_found("Cart or product not found")

            line = next((item for item in cart.products if item.product == product_id), None)
            if line is None:
                cart.products.append(CartItem(product=product_id, quantity=quantity))
            else:
                line.quantity += quantity
        logger.info("Added %s x product %s to cart %s", quantity, product_id, cart_id)
        return OperationResult.success(cart, "Product added to cart")

    def _new_id(self) -> str:
        return str(self._rng.randint(0, MAX_CART_ID))
