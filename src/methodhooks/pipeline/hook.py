"""Hook type and per-phase hook registries.

A registry maps a method name to the ordered chain of hooks registered
for it. Chains are append-only: registration order is execution order.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from methodhooks.pipeline.context import InvocationContext


# Type aliases
Hook = Callable[[Any, "InvocationContext"], Any]
Handler = Callable[..., Any]


class HookPhase(Enum):
    """When a hook runs relative to the original handler."""

    BEFORE = "before"
    AFTER = "after"


def hook_name(fn: Any) -> str:
    """Readable name of a hook for logs and rendering."""
    return getattr(fn, "__name__", None) or repr(fn)


class HookRegistry:
    """Hook chains for one phase, keyed by method name."""

    def __init__(self, phase: HookPhase) -> None:
        self.phase = phase
        self._chains: dict[str, list[Hook]] = {}

    def register(self, method_name: str, hook: Hook) -> None:
        """Append a hook to the chain for a method.

        Args:
            method_name: Name of the method in the method table
            hook: Callable invoked as ``hook(invocation, context)``
        """
        self._chains.setdefault(method_name, []).append(hook)

    def get(self, method_name: str) -> tuple[Hook, ...]:
        """Get the hooks currently registered for a method.

        The tuple is a snapshot: hooks registered afterwards do not appear in it.

        Args:
            method_name: Name of the method

        Returns:
            Hooks in registration order (empty if none)
        """
        return tuple(self._chains.get(method_name, ()))

    def method_names(self) -> list[str]:
        """Names of methods with at least one hook, in first-registration order."""
        return list(self._chains)

    def __contains__(self, method_name: object) -> bool:
        return method_name in self._chains

    def __len__(self) -> int:
        return sum(len(chain) for chain in self._chains.values())
