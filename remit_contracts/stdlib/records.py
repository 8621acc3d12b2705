# -*- coding: utf-8 -*-
"""
remit_contracts.stdlib.records
==============================

Id-keyed record tables and cursor pagination for the record contracts.

Each table stores dataclass records as canonical CBOR under an id-derived key
and keeps a monotonically increasing id counter. Ids start at 1 and are never
reused; iteration is in id order.

Storage Layout
--------------
- Id counter:
    key = prefix + b":next"                        -> last issued id (i128)
- Record:
    key = prefix + b":" + id (8 bytes, big-endian) -> CBOR map of the record

Pagination
----------
``page(ctx, cursor, limit, where)`` returns records with id > cursor that
match `where`, at most `limit` of them (0 means DEFAULT_PAGE_LIMIT, values
above MAX_PAGE_LIMIT are clamped). ``next_cursor`` is the id of the last
returned record when more matches remain, else 0.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Iterator, List, Optional, Type, TypeVar

__all__ = ["DEFAULT_PAGE_LIMIT", "MAX_PAGE_LIMIT", "Page", "Table", "clamp_limit"]

DEFAULT_PAGE_LIMIT = 20
MAX_PAGE_LIMIT = 50

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    items: List[T] = field(default_factory=list)
    next_cursor: int = 0
    count: int = 0


def clamp_limit(limit: int) -> int:
    if limit <= 0:
        return DEFAULT_PAGE_LIMIT
    return min(limit, MAX_PAGE_LIMIT)


class Table(Generic[T]):
    """A dataclass table living in one contract's instance storage."""

    def __init__(self, prefix: bytes, record_type: Type[T]) -> None:
        self._prefix = prefix
        self._type = record_type
        self._next_key = prefix + b":next"

    def _key(self, record_id: int) -> bytes:
        return self._prefix + b":" + int(record_id).to_bytes(8, "big")

    def last_id(self, ctx) -> int:
        return ctx.storage.get_int(self._next_key) or 0

    def next_id(self, ctx) -> int:
        nid = self.last_id(ctx) + 1
        ctx.storage.set_int(self._next_key, nid)
        return nid

    def put(self, ctx, record_id: int, record: T) -> None:
        ctx.storage.set_record(self._key(record_id), record)

    def get(self, ctx, record_id: Any) -> Optional[T]:
        if isinstance(record_id, bool) or not isinstance(record_id, int):
            return None
        if record_id <= 0 or record_id > self.last_id(ctx):
            return None
        raw = ctx.storage.get_record(self._key(record_id))
        if raw is None:
            return None
        return self._type(**raw)

    def scan(self, ctx, where: Optional[Callable[[T], bool]] = None, *, after: int = 0) -> Iterator[T]:
        for rid in range(max(after, 0) + 1, self.last_id(ctx) + 1):
            rec = self.get(ctx, rid)
            if rec is not None and (where is None or where(rec)):
                yield rec

    def page(self, ctx, cursor: int, limit: int, where: Optional[Callable[[T], bool]] = None) -> Page[T]:
        limit = clamp_limit(limit)
        items: List[T] = []
        more = False
        for rec in self.scan(ctx, where, after=cursor):
            if len(items) == limit:
                more = True
                break
            items.append(rec)
        next_cursor = getattr(items[-1], "id") if (more and items) else 0
        return Page(items=items, next_cursor=next_cursor, count=len(items))
