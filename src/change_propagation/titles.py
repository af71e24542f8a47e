from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from typing import Protocol

MAIN_NAMESPACE = 0
MAX_TITLE_BYTES = 255
ILLEGAL_TITLE_CHARS_RE = re.compile(r"[#<>\[\]|{}\x00-\x1f\x7f]")


class InvalidTitleError(ValueError):
    """The title text is malformed and cannot name a page."""


class PageNotFoundError(LookupError):
    """No page is stored under the requested page id."""


@dataclass(frozen=True, slots=True)
class PageRef:
    page_id: int
    namespace: int
    text: str
    exists_flag: bool = True

    def exists(self) -> bool:
        return self.exists_flag and self.page_id > 0

    def article_id(self) -> int:
        return self.page_id if self.exists_flag else 0

    def full_text(self) -> str:
        return self.text


class TitleResolver(Protocol):
    def resolve_by_page_id(self, page_id: int) -> PageRef:
        ...

    def resolve_by_text(self, text: str) -> PageRef:
        ...


def normalize_title_text(text: str) -> str:
    if not isinstance(text, str):
        raise InvalidTitleError(f"title must be a string, got {type(text).__name__}")

    normalized = " ".join(text.replace("_", " ").split())
    if not normalized:
        raise InvalidTitleError("title is empty")
    if ILLEGAL_TITLE_CHARS_RE.search(normalized):
        raise InvalidTitleError(f"title contains illegal characters: {text!r}")
    if len(normalized.encode("utf-8")) > MAX_TITLE_BYTES:
        raise InvalidTitleError(f"title exceeds {MAX_TITLE_BYTES} bytes: {text[:32]!r}...")
    return normalized[0].upper() + normalized[1:]


class InMemoryTitleResolver:
    """Resolves titles against pages registered with :meth:`add_page`."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_id: dict[int, PageRef] = {}
        self._by_text: dict[str, PageRef] = {}

    def add_page(self, page_id: int, text: str, *, namespace: int = MAIN_NAMESPACE, exists: bool = True) -> PageRef:
        ref = PageRef(page_id=page_id, namespace=namespace, text=normalize_title_text(text), exists_flag=exists)
        with self._lock:
            self._by_id[page_id] = ref
            self._by_text[ref.text] = ref
        return ref

    def resolve_by_page_id(self, page_id: int) -> PageRef:
        with self._lock:
            ref = self._by_id.get(page_id)
        if ref is None:
            raise PageNotFoundError(f"no page with id {page_id}")
        return ref

    def resolve_by_text(self, text: str) -> PageRef:
        normalized = normalize_title_text(text)
        with self._lock:
            ref = self._by_text.get(normalized)
        if ref is None:
            return PageRef(page_id=0, namespace=MAIN_NAMESPACE, text=normalized, exists_flag=False)
        return ref
