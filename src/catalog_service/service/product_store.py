"""JSON file persistence for the product catalog."""
from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import List

from ..data.records import ProductRecord, dump_products_json, read_products_json


logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    """Raised when the backing file cannot be written."""


class ProductStore:
    """Single-file product store that also owns the product ID counter."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._next_id = 1

    @property
    def next_id(self) -> int:
        return self._next_id

    def advance_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def load(self) -> List[ProductRecord]:
        """Read the product list and reset the ID counter from it.

        A missing or unreadable file is not fatal: the failure is logged and
        an empty catalog is returned.
        """

        try:
            records = read_products_json(self.path)
        except FileNotFoundError:
            logger.warning("Product file %s not found; starting with an empty catalog", self.path)
            records = []
        except (OSError, ValueError, TypeError) as exc:
            logger.warning("Could not load product file %s: %s", self.path, exc)
            records = []
        else:
            logger.info("Loaded %s products from %s", len(records), self.path)

        self._next_id = max((record.id for record in records), default=0) + 1
        return records

    def save(self, records: List[ProductRecord]) -> None:
        """Replace the backing file with the full product list.

        The payload goes to a temporary sibling first and is swapped in with
        ``os.replace`` so readers never see a half-written file.
        """

        payload = dump_products_json(records)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as exc:
            logger.error("Failed to save products to %s: %s", self.path, exc)
            raise StoreError(f"Could not write {self.path}: {exc}") from exc
        logger.debug("Saved %s products to %s", len(records), self.path)
