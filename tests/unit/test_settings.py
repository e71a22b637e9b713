"""Unit tests for application settings."""

from __future__ import annotations

import pytest

from ragdesk.config.settings import Settings


class TestSettings:
    def test_defaults(self, make_settings) -> None:
        settings = make_settings()

        assert settings.assistant_name == "RagDesk"
        assert settings.chunk_size == 1200
        assert settings.chunk_overlap == 150
        assert settings.ingest_default_max_files == 20
        assert settings.ingest_max_files_limit == 200

    @pytest.mark.parametrize(("raw", "expected"), [(0, 1), (-3, 1), (2, 2), (10, 10), (25, 10)])
    def test_topk_clamped(self, make_settings, raw: int, expected: int) -> None:
        settings = make_settings(internal_topk=raw, web_topk=raw)

        assert settings.internal_topk == expected
        assert settings.web_topk == expected

    def test_llm_mode(self, make_settings) -> None:
        assert make_settings().llm_mode() == "stub"
        assert make_settings(groq_api_key="gsk_test").llm_mode() == "groq"
        assert make_settings(groq_api_key="   ").is_llm_configured() is False


def test_environment_overrides_defaults(monkeypatch) -> None:
    monkeypatch.setenv("WEB_TOPK", "4")
    monkeypatch.setenv("WEBSEARCH_MODE", "duckduckgo")

    settings = Settings()

    assert settings.web_topk == 4
    assert settings.websearch_mode == "duckduckgo"


def test_init_values_beat_environment(monkeypatch, make_settings) -> None:
    monkeypatch.setenv("WEB_TOPK", "4")

    assert make_settings().web_topk == 3
