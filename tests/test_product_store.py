import json
from pathlib import Path

import pytest

from catalog_service.data.records import ProductRecord
from catalog_service.service.product_store import ProductStore, StoreError


def _record(product_id: int, code: str) -> ProductRecord:
    return ProductRecord(
        id=product_id,
        title=f"Widget {product_id}",
        description="A useful widget",
        price=12.5,
        thumbnail=f"/img/{code}.png",
        code=code,
        stock=3,
    )


def test_product_store_roundtrip(tmp_path: Path) -> None:
    store = ProductStore(tmp_path / "products.json")
    records = [_record(1, "W-1"), _record(2, "W-2"), _record(5, "W-5")]

    store.save(records)
    loaded = ProductStore(tmp_path / "products.json").load()

    assert loaded == records


def test_product_store_writes_json_array(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "products.json"
    ProductStore(path).save([_record(1, "W-1")])

    raw = json.loads(path.read_text())
    assert raw == [
        {
            "id": 1,
            "title": "Widget 1",
            "description": "A useful widget",
            "price": 12.5,
            "thumbnail": "/img/W-1.png",
            "code": "W-1",
            "stock": 3,
        }
    ]
    assert list(raw[0]) == ["id", "title", "description", "price", "thumbnail", "code", "stock"]


def test_load_sets_counter_past_highest_id(tmp_path: Path) -> None:
    store = ProductStore(tmp_path / "products.json")
    store.save([_record(4, "W-4"), _record(2, "W-2")])

    fresh = ProductStore(tmp_path / "products.json")
    fresh.load()

    assert fresh.next_id == 5


def test_load_missing_file_starts_empty(tmp_path: Path) -> None:
    store = ProductStore(tmp_path / "absent.json")

    assert store.load() == []
    assert store.next_id == 1


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        '{"id": 1}',
        '[{"id": 1, "title": "only a title"}]',
        '[{"id": "1", "title": "t", "description": "d", "price": 1, "thumbnail": "x", "code": "c", "stock": 1}]',
    ],
)
def test_load_corrupt_file_starts_empty(tmp_path: Path, content: str) -> None:
    path = tmp_path / "products.json"
    path.write_text(content)
    store = ProductStore(path)

    assert store.load() == []
    assert store.next_id == 1


def test_save_failure_raises_store_error(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    store = ProductStore(blocker / "products.json")

    with pytest.raises(StoreError):
        store.save([_record(1, "W-1")])


def test_save_leaves_no_temporary_files(tmp_path: Path) -> None:
    store = ProductStore(tmp_path / "products.json")
    store.save([_record(1, "W-1")])
    store.save([_record(1, "W-1"), _record(2, "W-2")])

    assert sorted(p.name for p in tmp_path.iterdir()) == ["products.json"]
