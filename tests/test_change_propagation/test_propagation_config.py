from __future__ import annotations

from change_propagation.config import load_config


def test_load_config_defaults(monkeypatch) -> None:
    for name in ("CLIENT_SITE_ID", "CLIENT_CONTENT_LANGUAGE", "CLIENT_CHECK_PAGE_EXISTENCE"):
        monkeypatch.delenv(name, raising=False)

    cfg = load_config()

    assert cfg.site_id == "enwiki"
    assert cfg.content_language_code == "en"
    assert cfg.check_page_existence is True


def test_load_config_from_env(monkeypatch) -> None:
    monkeypatch.setenv("CLIENT_SITE_ID", "dewiki")
    monkeypatch.setenv("CLIENT_CONTENT_LANGUAGE", "de")
    monkeypatch.setenv("CLIENT_CHECK_PAGE_EXISTENCE", "False")

    cfg = load_config()

    assert cfg.site_id == "dewiki"
    assert cfg.content_language_code == "de"
    assert cfg.check_page_existence is False
