"""Installs pipeline wrappers into the host's method table."""

from __future__ import annotations

import logging
from collections.abc import MutableMapping
from typing import TYPE_CHECKING

from methodhooks.pipeline.executor import InvocationPipeline, build_wrapper

if TYPE_CHECKING:
    from methodhooks.pipeline.hook import Handler, HookRegistry

logger = logging.getLogger(__name__)


class WrapperInstaller:
    """Makes method names hookable, at most once each.

    The installer only ever touches the table entries it is asked about.
    It never removes entries and never restores an original handler.
    """

    def __init__(
        self,
        handlers: MutableMapping[str, Handler],
        before_hooks: HookRegistry,
        after_hooks: HookRegistry,
        missing_result_level: int = logging.WARNING,
    ) -> None:
        self.handlers = handlers
        self.before_hooks = before_hooks
        self.after_hooks = after_hooks
        self.missing_result_level = missing_result_level
        self._originals: dict[str, Handler] = {}
        self._wrappers: dict[str, Handler] = {}
        self._installed: set[str] = set()

    def ensure_wrapped(self, method_name: str) -> bool:
        """Wrap the table entry for a method unless already wrapped.

        Missing methods are left alone; their hooks stay registered and are
        picked up by the next registration after the method appears.

        Args:
            method_name: Name of the method in the table

        Returns:
            True if a wrapper was installed by this call
        """
        if method_name in self._installed:
            return False

        original = self.handlers.get(method_name)
        if original is None:
            logger.debug("Method '%s' not found in method table, deferring wrap", method_name)
            return False

        # Capture before the wrapper becomes visible in the table
        self._originals[method_name] = original
        pipeline = InvocationPipeline(
            method_name,
            original,
            self.before_hooks,
            self.after_hooks,
            missing_result_level=self.missing_result_level,
        )
        wrapper = build_wrapper(pipeline)
        self._wrappers[method_name] = wrapper
        self._installed.add(method_name)
        self.handlers[method_name] = wrapper

        logger.debug("Installed hook wrapper for method '%s'", method_name)
        return True

    def is_wrapped(self, method_name: str) -> bool:
        return method_name in self._installed

    def original(self, method_name: str) -> Handler | None:
        """Handler captured for a method before wrapping, if any."""
        return self._originals.get(method_name)

    def wrapper(self, method_name: str) -> Handler | None:
        return self._wrappers.get(method_name)

    def wrapped_methods(self) -> list[str]:
        return sorted(self._installed)
