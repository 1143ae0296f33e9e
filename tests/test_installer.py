"""Tests for wrapper installation into the method table."""

import logging

import pytest

from methodhooks.installer import WrapperInstaller
from methodhooks.pipeline.hook import HookPhase, HookRegistry


def add(inv, a, b):
    """Add two numbers."""
    return a + b


@pytest.fixture
def handlers():
    return {"add": add}


@pytest.fixture
def installer(handlers):
    return WrapperInstaller(handlers, HookRegistry(HookPhase.BEFORE), HookRegistry(HookPhase.AFTER))


class TestEnsureWrapped:
    """Test WrapperInstaller.ensure_wrapped."""

    def test_wraps_existing_method(self, installer, handlers):
        """The table entry is replaced and the original captured."""
        assert installer.ensure_wrapped("add") is True

        assert handlers["add"] is not add
        assert handlers["add"] is installer.wrapper("add")
        assert installer.original("add") is add
        assert installer.is_wrapped("add")
        assert installer.wrapped_methods() == ["add"]

    def test_second_call_is_noop(self, installer, handlers):
        """Wrapping twice keeps the first wrapper and the true original."""
        installer.ensure_wrapped("add")
        wrapper = handlers["add"]

        assert installer.ensure_wrapped("add") is False
        assert handlers["add"] is wrapper
        assert installer.original("add") is add

    def test_missing_method_is_deferred(self, installer, handlers, caplog):
        """Missing methods are not wrapped and nothing is added to the table."""
        with caplog.at_level(logging.DEBUG, logger="methodhooks.installer"):
            assert installer.ensure_wrapped("sub") is False

        assert "sub" not in handlers
        assert not installer.is_wrapped("sub")
        assert installer.original("sub") is None
        assert "deferring wrap" in caplog.text

    def test_method_added_later_wraps_on_next_call(self, installer, handlers):
        """A method appearing later is wrapped by the next ensure_wrapped."""
        installer.ensure_wrapped("sub")

        def sub(inv, a, b):
            return a - b

        handlers["sub"] = sub
        assert handlers["sub"] is sub

        assert installer.ensure_wrapped("sub") is True
        assert installer.original("sub") is sub
        assert handlers["sub"](None, 5, 2) == 3

    def test_wrapper_keeps_original_metadata(self, installer, handlers):
        """The wrapper looks like the original to introspection."""
        installer.ensure_wrapped("add")
        wrapper = handlers["add"]

        assert wrapper.__name__ == "add"
        assert wrapper.__doc__ == "Add two numbers."
        assert wrapper.__wrapped__ is add

    def test_wrapper_calls_captured_original(self, installer, handlers):
        """Changes to the table behind the wrapper's back do not change what it calls."""
        installer.ensure_wrapped("add")
        wrapper = handlers["add"]
        handlers["add"] = lambda inv, a, b: a * b

        assert wrapper(None, 3, 4) == 7
