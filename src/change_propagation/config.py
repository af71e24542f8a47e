from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(slots=True)
class ChangePropagationConfig:
    site_id: str
    content_language_code: str
    check_page_existence: bool


def load_config() -> ChangePropagationConfig:
    return ChangePropagationConfig(
        site_id=os.getenv("CLIENT_SITE_ID", "enwiki"),
        content_language_code=os.getenv("CLIENT_CONTENT_LANGUAGE", "en"),
        check_page_existence=os.getenv("CLIENT_CHECK_PAGE_EXISTENCE", "true").lower() == "true",
    )
