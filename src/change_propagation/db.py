from __future__ import annotations

from usage_tracking.db import PostgresPool, retry

from .titles import MAIN_NAMESPACE, PageNotFoundError, PageRef, normalize_title_text


class SqlTitleResolver:
    """Resolves titles against the ``page(page_id, page_namespace, page_title)`` table.

    Titles are matched inside the configured namespace only. Namespace
    prefixes are not parsed, so a site link to ``"Category:Foo"`` is looked up
    as the main-namespace title ``Category:Foo`` and normally resolves to
    article id 0.
    """

    def __init__(self, db: PostgresPool, namespace: int = MAIN_NAMESPACE) -> None:
        self._db = db
        self._namespace = namespace

    def resolve_by_page_id(self, page_id: int) -> PageRef:
        row = retry(
            lambda: self._db.run(
                """
                SELECT page_id, page_namespace, page_title
                FROM page
                WHERE page_id = %s
                """,
                (page_id,),
                fetch="one",
            )
        )
        if not row:
            raise PageNotFoundError(f"no page with id {page_id}")
        return PageRef(
            page_id=int(row["page_id"]),
            namespace=int(row["page_namespace"]),
            text=row["page_title"].replace("_", " "),
        )

    def resolve_by_text(self, text: str) -> PageRef:
        normalized = normalize_title_text(text)
        row = retry(
            lambda: self._db.run(
                """
                SELECT page_id, page_namespace, page_title
                FROM page
                WHERE page_namespace = %s AND page_title = %s
                """,
                (self._namespace, normalized.replace(" ", "_")),
                fetch="one",
            )
        )
        if not row:
            return PageRef(page_id=0, namespace=self._namespace, text=normalized, exists_flag=False)
        return PageRef(page_id=int(row["page_id"]), namespace=int(row["page_namespace"]), text=normalized)
