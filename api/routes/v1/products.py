"""
api/routes/v1/products.py -- Product CRUD routes.

Routes (paths kept as the public contract defines them):
  GET    /products                     -- list all products
  POST   /products/create              -- create a product
  GET    /products/show/{product_id}   -- product detail
  PUT    /products/update/{product_id} -- partial update
  DELETE /products/{product_id}        -- delete

Per-request order: auth (router dependency) -> payload validation ->
target lookup -> store call -> envelope. Each step short-circuits with its
own error class from core/errors.py.
"""

from functools import partial
from typing import Any

from fastapi import APIRouter, Body, Depends, Request

from api.models import MessageEnvelope, ProductEnvelope, ProductListEnvelope, ProductResponse
from api.rules import PRODUCT_CREATE_RULES, PRODUCT_UPDATE_RULES
from auth.dependencies import get_current_user
from catalog.models import Product
from catalog.store import ProductStore
from core.errors import NotFound
from core.messages import Translator
from core.validation import validated

# All product routes require authentication.
router = APIRouter(dependencies=[Depends(get_current_user)])


def _payload(body: Any) -> dict:
    return body if isinstance(body, dict) else {}


def _get_or_404(store: ProductStore, product_id: int, t: Translator) -> Product:
    product = store.get_product(product_id)
    if product is None:
        raise NotFound(t("product_not_found"))
    return product


@router.get("/products", response_model=ProductListEnvelope)
def list_products(request: Request) -> ProductListEnvelope:
    """Return every product. No paging, filtering, or ordering beyond id order."""
    store: ProductStore = request.app.state.products
    return ProductListEnvelope(products=[ProductResponse.from_product(p) for p in store.list_products()])


@router.post("/products/create", response_model=ProductEnvelope, status_code=201)
def create_product(request: Request, body: Any = Body(default=None)) -> ProductEnvelope:
    """Create a product from name, price, and description."""
    store: ProductStore = request.app.state.products
    t: Translator = request.app.state.translator

    data = validated(
        _payload(body),
        PRODUCT_CREATE_RULES,
        partial(t.rule_message, "product_create"),
        t("validation_failed"),
    )
    product_id = store.create_product(
        Product(name=str(data["name"]), price=float(data["price"]), description=str(data["description"]))
    )
    created = _get_or_404(store, product_id, t)
    return ProductEnvelope(message=t("product_created"), product=ProductResponse.from_product(created))


@router.get("/products/show/{product_id}", response_model=ProductEnvelope, response_model_exclude_none=True)
def show_product(request: Request, product_id: int) -> ProductEnvelope:
    store: ProductStore = request.app.state.products
    t: Translator = request.app.state.translator
    product = _get_or_404(store, product_id, t)
    return ProductEnvelope(product=ProductResponse.from_product(product))


@router.put("/products/update/{product_id}", response_model=ProductEnvelope)
def update_product(request: Request, product_id: int, body: Any = Body(default=None)) -> ProductEnvelope:
    """Apply any subset of name, price, description. Omitted fields keep their values."""
    store: ProductStore = request.app.state.products
    t: Translator = request.app.state.translator

    data = validated(
        _payload(body),
        PRODUCT_UPDATE_RULES,
        partial(t.rule_message, "product_update"),
        t("validation_failed"),
    )
    _get_or_404(store, product_id, t)
    if data:
        for text_field in ("name", "description"):
            if text_field in data:
                data[text_field] = str(data[text_field])
        if "price" in data:
            data["price"] = float(data["price"])
        # A concurrent delete between lookup and update leaves no row to touch.
        if not store.update_product(product_id, **data):
            raise NotFound(t("product_not_found"))
    updated = _get_or_404(store, product_id, t)
    return ProductEnvelope(message=t("product_updated"), product=ProductResponse.from_product(updated))


@router.delete("/products/{product_id}", response_model=MessageEnvelope)
def delete_product(request: Request, product_id: int) -> MessageEnvelope:
    store: ProductStore = request.app.state.products
    t: Translator = request.app.state.translator
    if not store.delete_product(product_id):
        raise NotFound(t("product_not_found"))
    return MessageEnvelope(message=t("product_deleted"))
