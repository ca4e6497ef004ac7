# tests/unit/logging/test_unit_context.py — v2
"""Tests for logging/context.py — contextual logging variables."""

from __future__ import annotations

import threading

from charfidelity.logging.context import (
    clear_context,
    get_context,
    operation_context,
    set_session_context,
)


class TestLogContext:
    def test_initial_state(self):
        ctx = get_context()
        assert ctx.session_id is None
        assert ctx.operation is None
        assert ctx.file_extension is None

    def test_set_session_context(self):
        set_session_context("abc123")
        assert get_context().session_id == "abc123"

    def test_operation_context_scoped(self):
        with operation_context("match", "py"):
            ctx = get_context()
            assert ctx.operation == "match"
            assert ctx.file_extension == "py"
        assert get_context().operation is None
        assert get_context().file_extension is None

    def test_nested_operations(self):
        with operation_context("match", "py"):
            with operation_context("analyze"):
                assert get_context().operation == "analyze"
                assert get_context().file_extension is None
            assert get_context().operation == "match"

    def test_as_dict_filters_none(self):
        set_session_context("s1")
        d = get_context().as_dict()
        assert d == {"session_id": "s1"}

    def test_clear(self):
        set_session_context("s1")
        clear_context()
        assert get_context().session_id is None

    def test_isolated_per_thread(self):
        seen = []
        set_session_context("main")

        def worker():
            seen.append(get_context().session_id)

        t = threading.Thread(target=worker)
        t.start()
        t.join()
        assert seen == [None]
