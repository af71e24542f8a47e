from __future__ import annotations

import logging
import time
from collections import OrderedDict
from typing import Any, Callable, Iterable, Iterator, TypeVar

import psycopg2
from psycopg2.extras import RealDictCursor
from psycopg2.pool import ThreadedConnectionPool

from .lookup import expand_aspect_filter
from .models import EntityId, EntityUsage
from .page_usages import PageEntityUsages

T = TypeVar("T")

TRANSIENT_EXCEPTIONS = (psycopg2.OperationalError, psycopg2.InterfaceError)

logger = logging.getLogger(__name__)


def retry(operation: Callable[[], T], *, attempts: int = 4, base_delay: float = 0.2) -> T:
    for idx in range(attempts):
        try:
            return operation()
        except TRANSIENT_EXCEPTIONS as exc:
            if idx == attempts - 1:
                raise
            logger.warning("transient database error attempt=%d error=%s", idx + 1, exc)
            time.sleep(base_delay * (2 ** idx))
    raise RuntimeError("retry called with attempts < 1")


class PostgresPool:
    def __init__(self, pool: ThreadedConnectionPool) -> None:
        self._pool = pool

    @classmethod
    def connect(cls, dsn: str, min_conn: int = 1, max_conn: int = 10) -> "PostgresPool":
        return cls(ThreadedConnectionPool(min_conn, max_conn, dsn=dsn))

    def run(self, query: str, params: dict[str, Any] | tuple | None = None, *, fetch: str | None = None):
        conn = self._pool.getconn()
        try:
            with conn:
                with conn.cursor(cursor_factory=RealDictCursor) as cur:
                    cur.execute(query, params)
                    if fetch == "one":
                        return cur.fetchone()
                    if fetch == "all":
                        return cur.fetchall()
                    return None
        finally:
            self._pool.putconn(conn)

    def close(self) -> None:
        self._pool.closeall()


class SqlUsageLookup:
    """Reads usages from the ``entity_usage(eu_page_id, eu_entity_id, eu_aspect)`` table."""

    def __init__(self, db: PostgresPool) -> None:
        self._db = db

    @staticmethod
    def _rows_to_usages(rows: Iterable[dict[str, Any]]) -> list[tuple[int, EntityUsage]]:
        return [
            (int(row["eu_page_id"]), EntityUsage.from_aspect_key(EntityId(row["eu_entity_id"]), row["eu_aspect"]))
            for row in rows
        ]

    def get_pages_using(
        self,
        entity_ids: Iterable[EntityId],
        aspects: Iterable[str] = (),
    ) -> Iterator[PageEntityUsages]:
        serialized = sorted({str(entity_id) for entity_id in entity_ids})
        if not serialized:
            return iter(())

        exact, any_modifier = expand_aspect_filter(aspects)
        params: dict[str, Any] = {"entities": serialized}
        aspect_clause = ""
        if exact:
            params["aspects"] = sorted(exact)
            params["patterns"] = sorted(f"{aspect}.%" for aspect in any_modifier) or [""]
            aspect_clause = "AND (eu_aspect = ANY(%(aspects)s) OR eu_aspect LIKE ANY(%(patterns)s))"

        query = f"""
            SELECT eu_page_id, eu_entity_id, eu_aspect
            FROM entity_usage
            WHERE eu_entity_id = ANY(%(entities)s)
              AND eu_page_id IN (
                SELECT eu_page_id
                FROM entity_usage
                WHERE eu_entity_id = ANY(%(entities)s)
                {aspect_clause}
              )
            ORDER BY eu_page_id ASC
        """
        rows = retry(lambda: self._db.run(query, params, fetch="all"))

        grouped: OrderedDict[int, PageEntityUsages] = OrderedDict()
        for page_id, usage in self._rows_to_usages(rows or []):
            if page_id not in grouped:
                grouped[page_id] = PageEntityUsages(page_id)
            grouped[page_id].add_usages([usage])
        return iter(grouped.values())

    def get_usages_for_page(self, page_id: int) -> list[EntityUsage]:
        rows = retry(
            lambda: self._db.run(
                """
                SELECT eu_page_id, eu_entity_id, eu_aspect
                FROM entity_usage
                WHERE eu_page_id = %s
                """,
                (page_id,),
                fetch="all",
            )
        )
        return [usage for _, usage in self._rows_to_usages(rows or [])]

    def get_unused_entities(self, entity_ids: Iterable[EntityId]) -> list[EntityId]:
        entity_ids = list(entity_ids)
        if not entity_ids:
            return []
        rows = retry(
            lambda: self._db.run(
                """
                SELECT DISTINCT eu_entity_id
                FROM entity_usage
                WHERE eu_entity_id = ANY(%s)
                """,
                ([str(entity_id) for entity_id in entity_ids],),
                fetch="all",
            )
        )
        used = {row["eu_entity_id"] for row in rows or []}
        return [entity_id for entity_id in entity_ids if str(entity_id) not in used]
