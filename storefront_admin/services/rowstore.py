"""Table oriented access to the storefront database.

The roster and the dashboard never write SQL themselves. They go through a
:class:`RowStore`, which offers the handful of row level operations a hosted
backend-as-a-service exposes: filtered select, count, insert, update and delete.
Filters are equality matches on column values.
"""

from contextlib import contextmanager
from types import GeneratorType
from typing import Any, Callable, Dict, Generator, Iterable, List, Optional, Union
import logging

from sqlalchemy import MetaData, Table, delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..exceptions import DuplicateRow, RowStoreError
from ..tables import metadata as default_metadata


log = logging.getLogger(__name__)


class RowStore:
    """Interface of the row store collaborator."""

    def select(self, table: str, columns: Iterable[str] = ("*",),
               **filters: Any) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def count(self, table: str, **filters: Any) -> int:
        raise NotImplementedError

    def insert(self, table: str, row: Dict[str, Any]) -> None:
        raise NotImplementedError

    def update(self, table: str, values: Dict[str, Any], **filters: Any) -> int:
        raise NotImplementedError

    def delete(self, table: str, **filters: Any) -> int:
        raise NotImplementedError


class SQLRowStore(RowStore):
    """RowStore over SQLAlchemy.

    db can be either a Session or a function that returns or yields
    Sessions. Sessions obtained from a function are closed after each
    operation.
    """

    def __init__(self, db: Union[Session, Callable[[], Any]],
                 metadata: Optional[MetaData] = None):
        self.db = db
        self.metadata = metadata if metadata is not None else default_metadata

    @contextmanager
    def _session(self) -> Generator[Session, None, None]:
        if isinstance(self.db, Session):
            yield self.db
            return

        xdb = self.db()
        if isinstance(xdb, GeneratorType):
            try:
                yield next(xdb)
            finally:
                xdb.close()
        else:
            try:
                yield xdb
            finally:
                xdb.close()

    def _table(self, name: str) -> Table:
        try:
            return self.metadata.tables[name]
        except KeyError as exc:
            raise RowStoreError(f"Unknown table '{name}'") from exc

    def _where(self, table: Table, filters: Dict[str, Any]) -> list:
        clauses = []
        for column, value in filters.items():
            if column not in table.c:
                raise RowStoreError(f"Unknown column '{column}' on '{table.name}'")
            clauses.append(table.c[column] == value)
        return clauses

    def select(self, table: str, columns: Iterable[str] = ("*",),
               **filters: Any) -> List[Dict[str, Any]]:
        """Rows of ``table`` matching ``filters`` as dicts."""
        tbl = self._table(table)
        columns = list(columns)
        if columns == ["*"]:
            cols = list(tbl.c)
        else:
            missing = [name for name in columns if name not in tbl.c]
            if missing:
                raise RowStoreError(
                    f"Unknown column(s) {', '.join(missing)} on '{table}'")
            cols = [tbl.c[name] for name in columns]

        stmt = select(*cols).where(*self._where(tbl, filters))
        try:
            with self._session() as db:
                return [dict(row) for row in db.execute(stmt).mappings()]
        except SQLAlchemyError as exc:
            log.error("select on %s failed: %s", table, exc)
            raise RowStoreError(f"Select on '{table}' failed") from exc

    def count(self, table: str, **filters: Any) -> int:
        """Number of rows of ``table`` matching ``filters``."""
        tbl = self._table(table)
        stmt = select(func.count()).select_from(tbl).where(*self._where(tbl, filters))
        try:
            with self._session() as db:
                return int(db.execute(stmt).scalar() or 0)
        except SQLAlchemyError as exc:
            log.error("count on %s failed: %s", table, exc)
            raise RowStoreError(f"Count on '{table}' failed") from exc

    def insert(self, table: str, row: Dict[str, Any]) -> None:
        tbl = self._table(table)
        unknown = [name for name in row if name not in tbl.c]
        if unknown:
            raise RowStoreError(f"Unknown column(s) {', '.join(unknown)} on '{table}'")
        with self._session() as db:
            try:
                db.execute(insert(tbl).values(**row))
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                log.warning("insert into %s violated a constraint: %s", table, exc)
                raise DuplicateRow(f"Row already exists in '{table}'") from exc
            except SQLAlchemyError as exc:
                db.rollback()
                log.error("insert into %s failed: %s", table, exc)
                raise RowStoreError(f"Insert into '{table}' failed") from exc

    def update(self, table: str, values: Dict[str, Any], **filters: Any) -> int:
        """Set ``values`` on matching rows. Returns the number of rows changed."""
        tbl = self._table(table)
        if not filters:
            raise RowStoreError("Refusing to update without a filter")
        unknown = [name for name in values if name not in tbl.c]
        if unknown:
            raise RowStoreError(f"Unknown column(s) {', '.join(unknown)} on '{table}'")
        stmt = update(tbl).where(*self._where(tbl, filters)).values(**values)
        with self._session() as db:
            try:
                result = db.execute(stmt)
                db.commit()
                return result.rowcount or 0
            except SQLAlchemyError as exc:
                db.rollback()
                log.error("update of %s failed: %s", table, exc)
                raise RowStoreError(f"Update of '{table}' failed") from exc

    def delete(self, table: str, **filters: Any) -> int:
        """Delete matching rows. Returns the number of rows removed."""
        tbl = self._table(table)
        if not filters:
            raise RowStoreError("Refusing to delete without a filter")
        stmt = delete(tbl).where(*self._where(tbl, filters))
        with self._session() as db:
            try:
                result = db.execute(stmt)
                db.commit()
                return result.rowcount or 0
            except SQLAlchemyError as exc:
                db.rollback()
                log.error("delete from %s failed: %s", table, exc)
                raise RowStoreError(f"Delete from '{table}' failed") from exc
