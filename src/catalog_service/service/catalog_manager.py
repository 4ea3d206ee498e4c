"""CRUD operations over the in-memory product catalog."""
from __future__ import annotations

import logging
from dataclasses import replace
from threading import Lock
from typing import Dict, List, Mapping, Optional

from ..data.records import MUTABLE_FIELDS, REQUIRED_FIELDS, ProductRecord, is_missing
from .product_store import ProductStore, StoreError
from .results import OperationResult


logger = logging.getLogger(__name__)


class CatalogManager:
    """Owns the product list and persists every mutation through a ProductStore.

    Mutations run under a single lock so the duplicate-code check, the save and
    the in-memory commit happen as one step. The in-memory list only changes
    after the store has accepted the new list.
    """

    def __init__(self, store: ProductStore) -> None:
        self.store = store
        self._lock = Lock()
        self._products: List[ProductRecord] = store.load()

    def list(self, limit: Optional[int] = None) -> List[ProductRecord]:
        products = list(self._products)
        if isinstance(limit, int) and not isinstance(limit, bool) and limit > 0:
            return products[:limit]
        return products

    def get(self, product_id: int) -> Optional[ProductRecord]:
        return next((product for product in self._products if product.id == product_id), None)

    def snapshot(self) -> List[Dict[str, object]]:
        return [product.to_dict() for product in self._products]

    def __len__(self) -> int:
        return len(self._products)

    def add(self, fields: Mapping[str, object]) -> OperationResult:
        missing = [name for name in REQUIRED_FIELDS if is_missing(fields.get(name))]
        if missing:
            message = f"Missing required fields: {', '.join(missing)}"
            logger.info("Rejected new product: %s", message)
            return OperationResult.validation_error(message)

        with self._lock:
            code = fields["code"]
            if self._find_by_code(code) is not None:
                message = f"Product code {code!r} already exists"
                logger.info("Rejected new product: %s", message)
                return OperationResult.validation_error(message)

            record = ProductRecord(id=self.store.next_id, **{name: fields[name] for name in MUTABLE_FIELDS})
            failure = self._commit(self._products + [record])
            if failure is not None:
                return failure
            self.store.advance_id()

        logger.info("Added product %s (code %s)", record.id, record.code)
        return OperationResult.success(record, "Product added")

    def delete(self, product_id: int) -> OperationResult:
        with self._lock:
            target = self.get(product_id)
            if target is None:
                logger.info("Delete skipped: no product with id %s", product_id)
                return OperationResult.not_found(f"No product with id {product_id}")

            failure = self._commit([product for product in self._products if product.id != product_id])
            if failure is not None:
                return failure

        logger.info("Deleted product %s", product_id)
        return OperationResult.success(target, f"Product {product_id} deleted")

    def update(self, product_id: int, changes: Mapping[str, object]) -> OperationResult:
        with self._lock:
            current = self.get(product_id)
            if current is None:
                logger.info("Update skipped: no product with id %s", product_id)
                return OperationResult.not_found(f"No product with id {product_id}")

            ignored = sorted(name for name in changes if name not in MUTABLE_FIELDS)
            if ignored:
                logger.warning("Ignoring non-updatable fields for product %s: %s", product_id, ignored)
            updates = {name: value for name, value in changes.items() if name in MUTABLE_FIELDS}
            if not updates:
                return OperationResult.validation_error("No updatable fields supplied")

            blank = [name for name, value in updates.items() if is_missing(value)]
            if blank:
                return OperationResult.validation_error(f"Fields cannot be empty: {', '.join(blank)}")

            if "code" in updates:
                clash = self._find_by_code(updates["code"])
                if clash is not None and clash.id != product_id:
                    return OperationResult.validation_error(f"Product code {updates['code']!r} already exists")

            updated = replace(current, **updates)
            failure = self._commit(
                [updated if product.id == product_id else product for product in self._products]
            )
            if failure is not None:
                return failure

        logger.info("Updated product %s: %s", product_id, sorted(updates))
        return OperationResult.success(updated, f"Product {product_id} updated")

    def _find_by_code(self, code: object) -> Optional[ProductRecord]:
        return next((product for product in self._products if product.code == code), None)

    def _commit(self, candidate: List[ProductRecord]) -> Optional[OperationResult]:
        try:
            self.store.save(candidate)
        except StoreError as exc:
            return OperationResult.io_error(str(exc))
        self._products = candidate
        return None
