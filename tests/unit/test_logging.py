"""Unit tests for request-scoped log context."""

from __future__ import annotations

import pytest
import structlog

from ragdesk.utils.logging import bind_request_context, clear_request_context


@pytest.fixture(autouse=True)
def _clean_context():
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()


class TestRequestContext:
    def test_binds_both_ids(self) -> None:
        bind_request_context("r1", "c1")
        assert structlog.contextvars.get_contextvars() == {"request_id": "r1", "client_correlation_id": "c1"}

    def test_client_id_omitted_when_absent(self) -> None:
        bind_request_context("r1")
        assert structlog.contextvars.get_contextvars() == {"request_id": "r1"}

    def test_rebinding_drops_previous_request(self) -> None:
        bind_request_context("r1", "c1")
        structlog.contextvars.bind_contextvars(route="/chat")

        bind_request_context("r2")

        assert structlog.contextvars.get_contextvars() == {"request_id": "r2"}

    def test_clear_empties_context(self) -> None:
        bind_request_context("r1", "c1")
        clear_request_context()
        assert structlog.contextvars.get_contextvars() == {}
