"""
app/repositories/catalog_repository.py

Persistence gateway for the price catalog.

Each ingest runs in its own session and transaction; the batch is either
committed whole or rolled back whole. Aggregate and full-table reads open a
fresh session, so they observe every row committed before the call.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal
from types import TracebackType

from sqlalchemy import func, select, text
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.domain.price_record import CatalogEntry, PriceRecord
from app.errors import StorageError
from db.base import Base
from db.models.catalog_entry import CatalogEntryRecord

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")


class IngestTransaction:
    """
    Handle for one open ingest transaction.

    Used as a context manager it rolls back on exit unless committed, so a
    failure anywhere inside the block leaves no rows behind.
    """

    def __init__(self, gateway: CatalogGateway, session: Session) -> None:
        self._gateway = gateway
        self.session = session
        self.inserted_ids: list[int] = []
        self.closed = False

    def __enter__(self) -> IngestTransaction:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if not self.closed:
            self._gateway.rollback(self)


class CatalogGateway:
    """
    Transactional insert and consistent read access to the ``prices`` table.

    Parameters
    ----------
    session_factory:
        Callable returning a new Session. Injected so the store can be swapped
        (PostgreSQL in production, SQLite in tests).
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def begin_ingest(self) -> IngestTransaction:
        try:
            session = self._session_factory()
        except SQLAlchemyError as exc:
            raise StorageError(f"Unable to open session: {exc}", stage="persist") from exc

        try:
            session.begin()
        except SQLAlchemyError as exc:
            session.close()
            raise StorageError(f"Unable to begin transaction: {exc}", stage="persist") from exc
        return IngestTransaction(self, session)

    def insert_record(self, tx: IngestTransaction, record: PriceRecord) -> int:
        """
        Add one row under *tx* and return its store-assigned id.
        """

        if tx.closed:
            raise StorageError("Transaction is already closed.", stage="persist")

        row = CatalogEntryRecord(
            product_name=record.name,
            product_category=record.category,
            product_price=record.price,
            manufacture_date=record.manufacture_date,
        )
        try:
            tx.session.add(row)
            tx.session.flush()
        except SQLAlchemyError as exc:
            raise StorageError(
                f"Unable to execute statement: {exc}",
                stage="persist",
                row_index=len(tx.inserted_ids),
            ) from exc

        tx.inserted_ids.append(row.id)
        return row.id

    def commit(self, tx: IngestTransaction) -> None:
        if tx.closed:
            raise StorageError("Transaction is already closed.", stage="persist")

        try:
            tx.session.commit()
        except SQLAlchemyError as exc:
            self.rollback(tx)
            raise StorageError(f"Unable to commit transaction: {exc}", stage="persist") from exc

        tx.closed = True
        tx.session.close()

    def rollback(self, tx: IngestTransaction) -> None:
        if tx.closed:
            return
        tx.closed = True
        try:
            tx.session.rollback()
        finally:
            tx.session.close()
        logger.info("Ingest transaction rolled back pending_rows=%d", len(tx.inserted_ids))

    def ingest(self, records: Iterable[PriceRecord]) -> list[int]:
        """
        Insert *records* in one transaction and return their ids in order.

        Any failure rolls the whole batch back and raises StorageError.
        """

        with self.begin_ingest() as tx:
            for record in records:
                self.insert_record(tx, record)
            self.commit(tx)
            return list(tx.inserted_ids)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def query_aggregate(self) -> tuple[int, Decimal]:
        """
        Return ``(distinct category count, price sum)`` over the whole catalog.
        """

        stmt = select(
            func.count(func.distinct(CatalogEntryRecord.product_category)),
            func.coalesce(func.sum(CatalogEntryRecord.product_price), 0),
        )
        try:
            with self._session_factory() as session:
                categories, total = session.execute(stmt).one()
        except SQLAlchemyError as exc:
            raise StorageError(f"Unable to query aggregates: {exc}", stage="aggregate") from exc

        return int(categories or 0), _to_cents(total)

    def query_all(self) -> list[CatalogEntry]:
        """
        Return every catalog entry ordered by id ascending.
        """

        stmt = select(CatalogEntryRecord).order_by(CatalogEntryRecord.id.asc())
        try:
            with self._session_factory() as session:
                rows = session.scalars(stmt).all()
        except SQLAlchemyError as exc:
            raise StorageError(f"Unable to query catalog: {exc}", stage="persist") from exc

        return [
            CatalogEntry(
                id=row.id,
                name=row.product_name,
                category=row.product_category,
                price=_to_cents(row.product_price),
                manufacture_date=row.manufacture_date,
            )
            for row in rows
        ]

    def count_entries(self) -> int:
        stmt = select(func.count()).select_from(CatalogEntryRecord)
        try:
            with self._session_factory() as session:
                return int(session.scalar(stmt) or 0)
        except SQLAlchemyError as exc:
            raise StorageError(f"Unable to count catalog rows: {exc}", stage="persist") from exc

    def check_connection(self) -> None:
        """Run ``SELECT 1``. Raises StorageError if the store is unreachable."""
        try:
            with self._session_factory() as session:
                session.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            raise StorageError(f"Database unavailable: {exc}", stage="persist") from exc

    def missing_tables(self) -> set[str]:
        """
        Tables registered on the ORM metadata that are absent from the store.
        """
        try:
            with self._session_factory() as session:
                inspector = sa_inspect(session.get_bind())
                actual = set(inspector.get_table_names())
        except SQLAlchemyError as exc:
            raise StorageError(f"Unable to inspect schema: {exc}", stage="persist") from exc

        return set(Base.metadata.tables.keys()) - actual


def _to_cents(value: Decimal | float | int | None) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP)
