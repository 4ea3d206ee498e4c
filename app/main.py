"""FastAPI application exposing the product catalog, carts and live updates."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from fastapi import APIRouter, Depends, FastAPI, Query, Request, WebSocket, WebSocketDisconnect, status
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, ConfigDict, ValidationError

from catalog_service.config import ServiceConfig, load_config
from catalog_service.service import CartStore, CatalogManager, ChangeBroadcaster, OperationResult, ProductStore
from catalog_service.service.broadcaster import (
    DELETE_PRODUCT_EVENT,
    ERROR_EVENT,
    NEW_PRODUCT_EVENT,
    envelope,
)


logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))

router = APIRouter()


class ProductPayload(BaseModel):
    """Product fields as sent by clients; presence is checked by the catalog."""

    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Union[int, float]] = None
    thumbnail: Optional[str] = None
    code: Optional[str] = None
    stock: Optional[int] = None

    def to_fields(self) -> Dict[str, object]:
        return self.model_dump(exclude_unset=True)


class CartItemPayload(BaseModel):
    quantity: Optional[int] = None


def get_catalog(request: Request) -> CatalogManager:
    return request.app.state.catalog


def get_carts(request: Request) -> CartStore:
    return request.app.state.carts


def get_broadcaster(request: Request) -> ChangeBroadcaster:
    return request.app.state.broadcaster


def parse_int(raw: object) -> Optional[int]:
    """Read an integer id or limit; anything else (bools, 1.5, "abc") gives None."""

    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if raw.is_integer() else None
    if isinstance(raw, str):
        try:
            return int(raw.strip())
        except ValueError:
            return None
    return None


def _product_not_found() -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "Product not found"})


def _error_response(result: OperationResult) -> JSONResponse:
    return JSONResponse(
        status_code=result.http_status,
        content={"error": result.message, "status": result.status.value},
    )


async def _mutation_response(
    result: OperationResult,
    broadcaster: ChangeBroadcaster,
    status_code: int = status.HTTP_200_OK,
) -> JSONResponse:
    if not result.ok:
        return _error_response(result)
    await broadcaster.broadcast()
    return JSONResponse(status_code=status_code, content=result.value.to_dict())


@router.get("/api/products")
def api_list_products(
    limit: Optional[str] = Query(None),
    catalog: CatalogManager = Depends(get_catalog),
) -> List[Dict[str, object]]:
    return [product.to_dict() for product in catalog.list(parse_int(limit))]


@router.get("/api/products/{pid}")
def api_get_product(pid: str, catalog: CatalogManager = Depends(get_catalog)):
    product_id = parse_int(pid)
    product = catalog.get(product_id) if product_id is not None else None
    if product is None:
        return _product_not_found()
    return product.to_dict()


@router.post("/api/products")
async def api_create_product(
    payload: ProductPayload,
    catalog: CatalogManager = Depends(get_catalog),
    broadcaster: ChangeBroadcaster = Depends(get_broadcaster),
):
    result = await run_in_threadpool(catalog.add, payload.to_fields())
    return await _mutation_response(result, broadcaster, status.HTTP_201_CREATED)


@router.delete("/api/products/{pid}")
async def api_delete_product(
    pid: str,
    catalog: CatalogManager = Depends(get_catalog),
    broadcaster: ChangeBroadcaster = Depends(get_broadcaster),
):
    product_id = parse_int(pid)
    if product_id is None:
        return _error_response(OperationResult.not_found(f"No product with id {pid}"))
    result = await run_in_threadpool(catalog.delete, product_id)
    return await _mutation_response(result, broadcaster)


@router.put("/api/products/{pid}")
async def api_update_product(
    pid: str,
    payload: ProductPayload,
    catalog: CatalogManager = Depends(get_catalog),
    broadcaster: ChangeBroadcaster = Depends(get_broadcaster),
):
    product_id = parse_int(pid)
    if product_id is None:
        return _error_response(OperationResult.not_found(f"No product with id {pid}"))
    result = await run_in_threadpool(catalog.update, product_id, payload.to_fields())
    return await _mutation_response(result, broadcaster)


@router.post("/api/carts", status_code=status.HTTP_201_CREATED)
def api_create_cart(carts: CartStore = Depends(get_carts)) -> Dict[str, object]:
    cart = carts.create()
    return {"message": "Cart created", "cart": cart.to_dict()}


@router.get("/api/carts/{cid}")
def api_get_cart(cid: str, carts: CartStore = Depends(get_carts)):
    cart = carts.get(cid)
    if cart is None:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "Cart not found"})
    return {"cart": cart.to_dict()}


@router.post("/api/carts/{cid}/product/{pid}")
def api_add_to_cart(
    cid: str,
    pid: str,
    payload: Optional[CartItemPayload] = None,
    carts: CartStore = Depends(get_carts),
):
    product_id = parse_int(pid)
    if product_id is None:
        return _error_response(OperationResult.not_found("Cart or product not found"))
    quantity = payload.quantity if payload is not None and payload.quantity is not None else 1
    result = carts.add_item(cid, product_id, quantity)
    if not result.ok:
        return _error_response(result)
    return {"message": result.message, "cart": result.value.to_dict()}


@router.get("/", response_class=HTMLResponse)
@router.get("/products", response_class=HTMLResponse)
def products_page(
    request: Request,
    limit: Optional[str] = Query(None),
    catalog: CatalogManager = Depends(get_catalog),
):
    return templates.TemplateResponse(
        request,
        "products.html",
        {"products": catalog.list(parse_int(limit))},
    )


@router.get("/products/{pid}", response_class=HTMLResponse)
def product_page(request: Request, pid: str, catalog: CatalogManager = Depends(get_catalog)):
    product_id = parse_int(pid)
    product = catalog.get(product_id) if product_id is not None else None
    if product is None:
        return _product_not_found()
    return templates.TemplateResponse(request, "product.html", {"product": product})


@router.get("/realtimeproducts", response_class=HTMLResponse)
def realtime_products_page(request: Request, catalog: CatalogManager = Depends(get_catalog)):
    return templates.TemplateResponse(
        request,
        "realtime_products.html",
        {"products": catalog.list()},
    )


@router.get("/health")
def health(request: Request) -> Dict[str, object]:
    return {
        "status": "ok",
        "products": len(request.app.state.catalog),
        "observers": request.app.state.broadcaster.observer_count,
    }


def _describe_errors(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in error['loc']) or 'data'}: {error['msg']}" for error in exc.errors()
    )


async def _send_error(websocket: WebSocket, request_event: Optional[str], status_value: str, message: str) -> None:
    await websocket.send_json(
        envelope(ERROR_EVENT, {"request": request_event, "status": status_value, "message": message})
    )


async def _handle_realtime_event(websocket: WebSocket, event: Optional[str], data: object) -> None:
    catalog: CatalogManager = websocket.app.state.catalog
    broadcaster: ChangeBroadcaster = websocket.app.state.broadcaster

    if event == NEW_PRODUCT_EVENT:
        try:
            payload = ProductPayload.model_validate(data)
        except ValidationError as exc:
            await _send_error(websocket, event, "validation_error", _describe_errors(exc))
            return
        result = await run_in_threadpool(catalog.add, payload.to_fields())
    elif event == DELETE_PRODUCT_EVENT:
        product_id = parse_int(data)
        if product_id is None:
            await _send_error(websocket, event, "validation_error", "deleteProduct expects an integer product id")
            return
        result = await run_in_threadpool(catalog.delete, product_id)
    else:
        await _send_error(websocket, event, "validation_error", f"Unknown event {event!r}")
        return

    if result.ok:
        await broadcaster.broadcast()
    else:
        await _send_error(websocket, event, result.status.value, result.message)


@router.websocket("/ws/products")
async def products_socket(websocket: WebSocket):
    """Live product list.

    - Sends ``updateProductList`` with the full snapshot on connect and after
      every catalog mutation.
    - Accepts ``{"event": "newProduct", "data": {...}}`` and
      ``{"event": "deleteProduct", "data": <id>}``.
    - Failed requests are answered with an ``error`` event to the sender only.
    """

    broadcaster: ChangeBroadcaster = websocket.app.state.broadcaster
    await websocket.accept()
    try:
        await broadcaster.connect(websocket)
        while True:
            try:
                message = await websocket.receive_json()
            except (json.JSONDecodeError, KeyError, UnicodeDecodeError):
                await websocket.close(code=status.WS_1003_UNSUPPORTED_DATA)
                break

            if not isinstance(message, dict):
                await _send_error(websocket, None, "validation_error", "Expected an {event, data} object")
                continue
            await _handle_realtime_event(websocket, message.get("event"), message.get("data"))
    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.disconnect(websocket)


def create_app(config: Optional[ServiceConfig] = None) -> FastAPI:
    config = config or load_config()
    logging.basicConfig(level=config.log_level)

    application = FastAPI(title="Catalog Service")
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    catalog = CatalogManager(ProductStore(config.product_store_path))
    application.state.config = config
    application.state.catalog = catalog
    application.state.carts = CartStore(catalog)
    application.state.broadcaster = ChangeBroadcaster(catalog.snapshot)

    application.include_router(router)
    application.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")
    logger.info("Catalog service ready with %s products from %s", len(catalog), config.product_store_path)
    return application


app = create_app()
