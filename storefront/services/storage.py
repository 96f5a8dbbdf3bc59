# storefront/services/storage.py
"""
Durable key/value stores for the serialised cart.

Only CartStore (and the checkout session helper) write here. Both backends
raise StorageError on any backend failure so callers can decide whether to
swallow it.
"""
from __future__ import annotations

from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError

from ..errors import StorageError


class CartStorage(Protocol):
    def read(self, key: str) -> str | None: ...
    def write(self, key: str, value: str) -> None: ...
    def delete(self, key: str) -> None: ...


class MemoryStorage:
    def __init__(self, initial: dict | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def read(self, key):
        return self._data.get(key)

    def write(self, key, value):
        self._data[key] = value

    def delete(self, key):
        self._data.pop(key, None)

    def __contains__(self, key):
        return key in self._data


class DatabaseStorage:
    """Stores each key as one row of the cart_storage table."""

    def __init__(self, session=None) -> None:
        if session is None:
            from ..extensions import db
            session = db.session
        self.session = session

    def read(self, key):
        from ..model import StoredCart
        try:
            row = self.session.get(StoredCart, key)
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StorageError(f"read {key!r} failed: {e}") from e
        return row.value if row else None

    def write(self, key, value):
        from ..model import StoredCart
        try:
            row = self.session.get(StoredCart, key)
            if row:
                row.value = value
                row.version = (row.version or 0) + 1
            else:
                self.session.add(StoredCart(key=key, value=value, version=1))
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StorageError(f"write {key!r} failed: {e}") from e

    def delete(self, key):
        from ..model import StoredCart
        try:
            row = self.session.get(StoredCart, key)
            if row:
                self.session.delete(row)
                self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StorageError(f"delete {key!r} failed: {e}") from e
