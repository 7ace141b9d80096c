"""SQLite-backed product store.

Rows are written with ``INSERT ... ON CONFLICT(identifier) DO NOTHING``, so
re-crawling the same listing never duplicates or updates an existing row.
"""
from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import (
    Column,
    DateTime,
    MetaData,
    Numeric,
    Table,
    Text,
    create_engine,
    func,
    select,
    text,
)
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from listing_crawler.domain.errors import StoreError
from listing_crawler.domain.models import ListingItem, StoredProduct
from listing_crawler.utils.money import parse_price

logger = logging.getLogger(__name__)

metadata = MetaData()

products = Table(
    "products",
    metadata,
    Column("identifier", Text, primary_key=True),
    Column("title", Text, nullable=False),
    Column("price", Numeric(10, 5, asdecimal=False)),
    Column(
        "creation_timestamp",
        DateTime,
        nullable=False,
        server_default=func.current_timestamp(),
    ),
)


class ItemStore:
    def __init__(self, path: str = "products.db", engine: Engine | None = None) -> None:
        if engine is None:
            if path != ":memory:":
                Path(path).parent.mkdir(parents=True, exist_ok=True)
            engine = create_engine(f"sqlite:///{path}")
        self._engine = engine
        self._closed = False

    def ensure_schema(self) -> None:
        try:
            metadata.create_all(self._engine, checkfirst=True)
        except SQLAlchemyError as exc:
            raise StoreError(f"Could not create schema: {exc}") from exc
        logger.debug("Schema ready | url=%s", self._engine.url)

    def upsert(self, item: ListingItem) -> bool:
        """
        Inserts the item unless its identifier is already stored.

        Returns True when a row was written, False for an existing identifier.
        Raises StoreError for a malformed price or any database failure.
        """
        try:
            price = parse_price(item.price)
        except ValueError as exc:
            raise StoreError(f"Rejected price for {item.identifier}: {exc}") from exc

        stmt = (
            sqlite_insert(products)
            .values(identifier=item.identifier, title=item.title, price=price)
            .on_conflict_do_nothing(index_elements=["identifier"])
        )
        try:
            with self._engine.begin() as conn:
                inserted = conn.execute(stmt).rowcount == 1
        except SQLAlchemyError as exc:
            raise StoreError(f"Could not store {item.identifier}: {exc}") from exc
        return inserted

    def fetch_all(self) -> list[StoredProduct]:
        # rowid keeps insertion order
        stmt = select(products).order_by(text("rowid"))
        with self._engine.connect() as conn:
            rows = conn.execute(stmt).all()
        return [
            StoredProduct(
                identifier=row.identifier,
                title=row.title,
                price=row.price,
                creation_timestamp=row.creation_timestamp,
            )
            for row in rows
        ]

    def count(self) -> int:
        with self._engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(products)).scalar_one()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._engine.dispose()
