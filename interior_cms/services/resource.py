"""
Shared table access for the resource API modules.
Each resource module subclasses ResourceApi with its table name and ordering,
so the configured/unconfigured check and error translation live in one place.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from interior_cms.backend import Configured, get_backend
from interior_cms.errors import (
    ROW_NOT_FOUND_CODE,
    BackendError,
    ConfigurationError,
    is_row_not_found,
)

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ResourceApi:
    """
    Uniform get/create/update/delete access to one backend table.

    Reads on an unconfigured backend return [] or None; writes raise
    ConfigurationError. Remote failures surface as BackendError, except the
    "row not found" case of single-row lookups, which returns None.
    """

    table: str = ""
    order_by: Optional[str] = None
    order_desc: bool = False

    def _read_client(self) -> Optional[Client]:
        backend = get_backend()
        if isinstance(backend, Configured):
            return backend.client
        return None

    def _write_client(self) -> Client:
        backend = get_backend()
        if isinstance(backend, Configured):
            return backend.client
        raise ConfigurationError()

    def _execute(self, query) -> Any:
        try:
            return query.execute().data
        except APIError as e:
            logger.error(f"Supabase request on '{self.table}' failed: {e.code} {e.message}")
            raise BackendError.from_api_error(e)
        except httpx.HTTPError as e:
            logger.error(f"Supabase request on '{self.table}' failed: {str(e)}", exc_info=True)
            raise BackendError(message=str(e))

    def _select(self, **filters: Any) -> List[Row]:
        client = self._read_client()
        if client is None:
            return []

        query = client.table(self.table).select("*")
        for column, value in filters.items():
            query = query.eq(column, value)
        if self.order_by:
            query = query.order(self.order_by, desc=self.order_desc)

        return self._execute(query) or []

    def _select_one(self, column: str, value: Any) -> Optional[Row]:
        client = self._read_client()
        if client is None:
            return None

        query = client.table(self.table).select("*").eq(column, value).single()
        try:
            return query.execute().data
        except APIError as e:
            if is_row_not_found(e):
                logger.debug(f"No row in '{self.table}' where {column}={value}")
                return None
            logger.error(f"Supabase lookup on '{self.table}' failed: {e.code} {e.message}")
            raise BackendError.from_api_error(e)
        except httpx.HTTPError as e:
            logger.error(f"Supabase lookup on '{self.table}' failed: {str(e)}", exc_info=True)
            raise BackendError(message=str(e))

    def _single_row(self, rows: Optional[List[Row]], action: str) -> Row:
        if not rows:
            raise BackendError(
                message=f"{action} on '{self.table}' returned no row",
                code=ROW_NOT_FOUND_CODE,
            )
        return rows[0]

    def _insert(self, payload: Row) -> Row:
        client = self._write_client()
        rows = self._execute(client.table(self.table).insert(payload))
        row = self._single_row(rows, "insert")
        logger.info(f"Inserted row into '{self.table}': id={row.get('id')}")
        return row

    def _update(self, row_id: str, changes: Row) -> Row:
        client = self._write_client()
        rows = self._execute(client.table(self.table).update(changes).eq("id", row_id))
        row = self._single_row(rows, "update")
        logger.info(f"Updated row in '{self.table}': id={row_id}, fields={sorted(changes)}")
        return row

    def _delete(self, row_id: str) -> None:
        client = self._write_client()
        self._execute(client.table(self.table).delete().eq("id", row_id))
        logger.info(f"Deleted row from '{self.table}': id={row_id}")

    # Public operations shared by every table-backed module

    def get_all(self) -> List[Row]:
        return self._select()

    def get_by_id(self, row_id: str) -> Optional[Row]:
        return self._select_one("id", row_id)

    def create(self, payload: Row) -> Row:
        return self._insert(payload)

    def update(self, row_id: str, changes: Row) -> Row:
        return self._update(row_id, changes)

    def delete(self, row_id: str) -> None:
        self._delete(row_id)
