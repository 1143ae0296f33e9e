"""Before and after hooks for RPC-style method handlers.

Hooks are registered against a method name in a host-owned method table
(a mapping from name to handler). The table entry is wrapped once, and
every later call runs the before hooks, the original handler and the
after hooks in registration order.
"""

from methodhooks.config import HookEntry, MethodHooksConfig, get_config
from methodhooks.installer import WrapperInstaller
from methodhooks.manager import MethodHooks
from methodhooks.pipeline import (
    Handler,
    Hook,
    HookPhase,
    HookRegistry,
    InvocationContext,
    InvocationPipeline,
)

__all__ = [
    "MethodHooks",
    "MethodHooksConfig",
    "HookEntry",
    "get_config",
    "WrapperInstaller",
    "Handler",
    "Hook",
    "HookPhase",
    "HookRegistry",
    "InvocationContext",
    "InvocationPipeline",
]
