"""Invocation context passed to every hook.

One instance is built per hook call; nothing here outlives the call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class InvocationContext:
    """Per-call record handed to before and after hooks.

    Attributes:
        result: Result of the original handler (None for before hooks, or
            the result as rewritten by previous after hooks)
        error: Exception raised by the original handler, if any
        arguments: Positional call arguments. Mutating this list changes what
            later hooks and the original handler receive.
        kwargs: Keyword call arguments, mutable the same way as ``arguments``
        hooks_processed: Number of hooks in the same chain that ran before this one
        method_name: Name of the method being invoked
    """

    result: Any = None
    error: BaseException | None = None
    arguments: list[Any] = field(default_factory=list)
    kwargs: dict[str, Any] = field(default_factory=dict)
    hooks_processed: int = 0
    method_name: str = ""

    @property
    def failed(self) -> bool:
        """True if the original handler raised."""
        return self.error is not None
