"""Unit tests for catalog/store.py -- ProductStore CRUD.

Covers:
- create_product() assigns ids and timestamps
- list_products() returns everything in id order
- update_product() merges partial fields and leaves the rest intact
- update_product() rejects columns outside name/price/description
- delete_product() and lookups of missing ids
"""

import pytest

from catalog.models import Product


def _product(name="Desk Lamp", price=19.9, description="Adjustable LED lamp"):
    return Product(name=name, price=price, description=description)


def test_create_and_get(product_store):
    pid = product_store.create_product(_product())
    product = product_store.get_product(pid)
    assert product.id == pid
    assert (product.name, product.price, product.description) == ("Desk Lamp", 19.9, "Adjustable LED lamp")
    assert product.created_at and product.updated_at


def test_list_in_id_order(product_store):
    ids = [product_store.create_product(_product(name=f"Item {i}")) for i in range(3)]
    assert [p.id for p in product_store.list_products()] == ids


def test_list_empty(product_store):
    assert product_store.list_products() == []


def test_partial_update_changes_only_given_fields(product_store):
    pid = product_store.create_product(_product())
    assert product_store.update_product(pid, price=9.99) is True
    product = product_store.get_product(pid)
    assert product.price == 9.99
    assert product.name == "Desk Lamp"
    assert product.description == "Adjustable LED lamp"


def test_update_multiple_fields(product_store):
    pid = product_store.create_product(_product())
    product_store.update_product(pid, name="Floor Lamp", description="Tall lamp")
    product = product_store.get_product(pid)
    assert (product.name, product.price, product.description) == ("Floor Lamp", 19.9, "Tall lamp")


def test_update_rejects_unknown_columns(product_store):
    pid = product_store.create_product(_product())
    with pytest.raises(ValueError, match="Unknown product fields"):
        product_store.update_product(pid, id=999)


def test_update_missing_returns_false(product_store):
    assert product_store.update_product(424242, price=1) is False


def test_negative_price_is_stored(product_store):
    pid = product_store.create_product(_product(price=-3.5))
    assert product_store.get_product(pid).price == -3.5


def test_delete_then_get_is_none(product_store):
    pid = product_store.create_product(_product())
    assert product_store.delete_product(pid) is True
    assert product_store.get_product(pid) is None
    assert product_store.delete_product(pid) is False
