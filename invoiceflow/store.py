"""
Key-value persistence.

The store knows nothing about invoices: it saves JSON documents under string
keys and can list every document whose key starts with a prefix. Invoices live
under ``invoice:<epoch-millis>:<random>``.
"""

from __future__ import annotations

import logging
import secrets
import string
import time
from typing import Any

from fastapi import Depends
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .db import get_db
from .errors import StoreUnavailable
from .models import KVEntry

logger = logging.getLogger(__name__)

INVOICE_PREFIX = "invoice:"

_SUFFIX_ALPHABET = string.digits + string.ascii_lowercase


def new_invoice_key(now_ms: int | None = None) -> str:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(9))
    return f"{INVOICE_PREFIX}{now_ms}:{suffix}"


class KeyValueStore:
    """get / set / delete / scan over the ``kv_store`` table."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str) -> dict[str, Any] | None:
        try:
            entry = self.db.get(KVEntry, key)
        except SQLAlchemyError as exc:
            raise self._failure("get", key) from exc
        return entry.value if entry is not None else None

    def set(self, key: str, value: dict[str, Any]) -> None:
        try:
            entry = self.db.get(KVEntry, key)
            if entry is None:
                self.db.add(KVEntry(key=key, value=value))
            else:
                entry.value = value
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise self._failure("set", key) from exc

    def delete(self, key: str) -> None:
        try:
            self.db.execute(delete(KVEntry).where(KVEntry.key == key))
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise self._failure("delete", key) from exc

    def scan(self, prefix: str) -> list[dict[str, Any]]:
        try:
            rows = self.db.scalars(
                select(KVEntry.value).where(KVEntry.key.startswith(prefix, autoescape=True))
            ).all()
        except SQLAlchemyError as exc:
            raise self._failure("scan", prefix) from exc
        return list(rows)

    @staticmethod
    def _failure(operation: str, key: str) -> StoreUnavailable:
        logger.exception("Key-value %s failed for %r", operation, key)
        return StoreUnavailable(f"Key-value store {operation} failed")


def get_store(db: Session = Depends(get_db)) -> KeyValueStore:
    return KeyValueStore(db)
