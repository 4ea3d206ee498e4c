"""Record types and JSON helpers for the product catalog and carts."""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, List, Union


Number = Union[int, float]

PRODUCT_FIELDS = ["id", "title", "description", "price", "thumbnail", "code", "stock"]
# Fields a caller may set on create or update; ``id`` is assigned by the catalog.
MUTABLE_FIELDS = ["title", "description", "price", "thumbnail", "code", "stock"]
REQUIRED_FIELDS = MUTABLE_FIELDS


@dataclass
class ProductRecord:
    id: int
    title: str
    description: str
    price: Number
    thumbnail: str
    code: str
    stock: int

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)

    @classmethod
    def from_dict(cls, row: Dict[str, object]) -> "ProductRecord":
        missing = [name for name in PRODUCT_FIELDS if name not in row]
        if missing:
            raise ValueError(f"Product record is missing fields: {', '.join(missing)}")
        if isinstance(row["id"], bool) or not isinstance(row["id"], int):
            raise ValueError(f"Product id must be an integer, got {row['id']!r}")
        return cls(**{name: row[name] for name in PRODUCT_FIELDS})


@dataclass
class CartItem:
    product: int
    quantity: int


@dataclass
class CartRecord:
    id: str
    products: List[CartItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


def is_missing(value: object) -> bool:
    """Return True for values that count as absent in a product payload.

    Numeric zero is a legitimate price or stock level and is not missing.
    """

    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def read_products_json(path: Path) -> List[ProductRecord]:
    with path.open(encoding="utf-8") as handle:
        raw = json.load(handle)
    if not isinstance(raw, list):
        raise ValueError(f"Expected a JSON array of products in {path}")
    return [ProductRecord.from_dict(row) for row in raw]


def dump_products_json(records: List[ProductRecord]) -> str:
    return json.dumps([record.to_dict() for record in records], indent=2)
