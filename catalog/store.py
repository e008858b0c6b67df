"""
catalog/store.py -- SQLAlchemy-backed persistence layer for products.

Uses SQLAlchemy Core (not ORM) so the dataclass in catalog/models.py remains
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change, not a rewrite.

Pattern: Repository + Data Mapper. ProductStore is the repository,
_row_to_product is the mapper. Route handlers never touch SQL directly.

Security: all queries use bound parameters. No f-strings in SQL. Column
names for updates come from _MUTABLE_FIELDS, never from request keys.

Usage:
    store = ProductStore()                               # SQLite default
    store = ProductStore("postgresql://user:pw@host/db") # PostgreSQL
    product_id = store.create_product(Product(name="Lamp", price=19.9, description="Desk lamp"))
    store.update_product(product_id, price=17.5)
    store.delete_product(product_id)
    store.close()
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from sqlalchemy import Column, Float, Integer, MetaData, String, Table, Text, create_engine, event, select
from sqlalchemy.engine import Engine

from catalog.models import Product

logger = logging.getLogger("catalogapi.catalog")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent / 'catalog_products.db'}"

_MUTABLE_FIELDS = frozenset({"name", "price", "description"})

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_products = Table(
    "products",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("price", Float, nullable=False),
    Column("description", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode. Set per-connection because SQLite PRAGMAs are
    not inherited by new connections from the pool."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ProductStore:
    def __init__(self, db_url: Optional[str] = None) -> None:
        db_url = db_url or _DEFAULT_DB_URL
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            # Starlette runs sync handlers in a threadpool, so one pooled
            # connection may be used from several threads over its life.
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    def create_product(self, product: Product) -> int:
        """Insert a new product and return its assigned database ID."""
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _products.insert().values(
                    name=product.name,
                    price=float(product.price),
                    description=product.description,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            product_id = result.inserted_primary_key[0]
        logger.info("Created product id=%s", product_id)
        return product_id

    def get_product(self, product_id: int) -> Optional[Product]:
        """Fetch a single product by ID. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_products.select().where(_products.c.id == product_id)).fetchone()
        return _row_to_product(row) if row is not None else None

    def list_products(self) -> list[Product]:
        """Return every product in insertion (id) order. No paging."""
        with self.engine.connect() as conn:
            rows = conn.execute(select(_products).order_by(_products.c.id)).fetchall()
        return [_row_to_product(r) for r in rows]

    def update_product(self, product_id: int, **fields) -> bool:
        """Merge the given fields into an existing product.

        Accepts any subset of: name, price, description. Fields not passed
        keep their stored value. Unknown keys raise ValueError.

        Returns True if a row was updated, False if product_id was not found.
        """
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown product fields: {sorted(unknown)!r}")
        if "price" in fields:
            fields["price"] = float(fields["price"])
        with self.engine.connect() as conn:
            result = conn.execute(
                _products.update().where(_products.c.id == product_id).values(updated_at=_now_iso(), **fields)
            )
            conn.commit()
        if result.rowcount > 0:
            logger.info("Updated product id=%s fields=%s", product_id, sorted(fields))
        return result.rowcount > 0

    def delete_product(self, product_id: int) -> bool:
        """Permanently delete a product. Returns True if deleted, False if not found."""
        with self.engine.connect() as conn:
            result = conn.execute(_products.delete().where(_products.c.id == product_id))
            conn.commit()
        if result.rowcount > 0:
            logger.info("Deleted product id=%s", product_id)
        return result.rowcount > 0

    def ping(self) -> bool:
        with self.engine.connect() as conn:
            conn.execute(select(1))
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_product(row) -> Product:
    return Product(
        id=row.id,
        name=row.name,
        price=row.price,
        description=row.description,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
