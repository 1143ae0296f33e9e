"""methodhooks manager - before/after hooks for a host's method table."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, MutableMapping

from methodhooks.config import MethodHooksConfig, get_config
from methodhooks.installer import WrapperInstaller
from methodhooks.pipeline.hook import Handler, Hook, HookPhase, HookRegistry, hook_name

logger = logging.getLogger(__name__)


class MethodHooks:
    """Owns the hook registries and wrappers for one method table.

    Create one instance at start-up around the host's handler mapping and
    register hooks through it. Registering a hook for a method already in
    the table replaces the table entry with a wrapper that runs the hooks;
    registering for a method not yet in the table only records the hook.

    Example:
        handlers = {"add": lambda inv, a, b: a + b}
        hooks = MethodHooks(handlers)

        def double_first(inv, ctx):
            ctx.arguments[0] *= 2

        hooks.before("add", double_first)
        handlers["add"](None, 3, 4)  # 10
    """

    def __init__(
        self,
        handlers: MutableMapping[str, Handler],
        config: MethodHooksConfig | None = None,
    ) -> None:
        self.config = config if config is not None else get_config()
        self.handlers = handlers
        self._before = HookRegistry(HookPhase.BEFORE)
        self._after = HookRegistry(HookPhase.AFTER)
        self._installer = WrapperInstaller(
            handlers,
            self._before,
            self._after,
            missing_result_level=self.config.missing_result_level,
        )

        if self.config.debug:
            # Set DEBUG level for all methodhooks loggers (manager, installer, pipeline)
            package_logger = logging.getLogger("methodhooks")
            package_logger.setLevel(logging.DEBUG)
            if not package_logger.handlers:
                handler = logging.StreamHandler()
                handler.setFormatter(logging.Formatter("%(name)s:%(levelname)s: %(message)s"))
                package_logger.addHandler(handler)

    def _registry(self, phase: HookPhase) -> HookRegistry:
        return self._before if phase is HookPhase.BEFORE else self._after

    def register(self, phase: HookPhase, method_name: str, hook: Hook) -> None:
        """Record a hook and make sure the method is wrapped.

        Args:
            phase: Whether the hook runs before or after the method
            method_name: Name of the method in the table
            hook: Callable invoked as ``hook(invocation, context)``
        """
        self._registry(phase).register(method_name, hook)
        logger.debug("Registered %s hook '%s' for method '%s'", phase.value, hook_name(hook), method_name)
        self._installer.ensure_wrapped(method_name)

    def before(self, method_name: str, hook: Hook) -> None:
        """Add a hook to run before the method.

        Return values of before hooks are ignored; a hook changes the call by
        mutating ``context.arguments`` or ``context.kwargs``.
        """
        self.register(HookPhase.BEFORE, method_name, hook)

    def after(self, method_name: str, hook: Hook) -> None:
        """Add a hook to run after the method.

        The hook's return value becomes the method result passed to later
        after hooks and finally to the caller. It should return
        ``context.result`` when it does not mean to change the result.
        """
        self.register(HookPhase.AFTER, method_name, hook)

    def before_methods(self, method_names: Iterable[str], hook: Hook) -> None:
        """Add one shared before hook to each of the named methods."""
        for method_name in method_names:
            self.before(method_name, hook)

    def before_method_map(self, hooks_by_method: Mapping[str, Hook]) -> None:
        """Add a before hook per method from a name → hook mapping."""
        for method_name, hook in hooks_by_method.items():
            self.before(method_name, hook)

    def after_methods(self, method_names: Iterable[str], hook: Hook) -> None:
        """Add one shared after hook to each of the named methods."""
        for method_name in method_names:
            self.after(method_name, hook)

    def after_method_map(self, hooks_by_method: Mapping[str, Hook]) -> None:
        """Add an after hook per method from a name → hook mapping."""
        for method_name, hook in hooks_by_method.items():
            self.after(method_name, hook)

    def hook_before(self, method_name: str) -> Callable[[Hook], Hook]:
        """Decorator form of :meth:`before`.

        Example:
            @hooks.hook_before("createTodo")
            def check_owner(invocation, ctx):
                ...
        """

        def decorator(fn: Hook) -> Hook:
            self.before(method_name, fn)
            return fn

        return decorator

    def hook_after(self, method_name: str) -> Callable[[Hook], Hook]:
        """Decorator form of :meth:`after`."""

        def decorator(fn: Hook) -> Hook:
            self.after(method_name, fn)
            return fn

        return decorator

    def load_config_hooks(self, config: MethodHooksConfig | None = None) -> int:
        """Register the hooks declared in configuration.

        Args:
            config: Configuration to read; defaults to this instance's config

        Returns:
            Number of hooks registered
        """
        config = config if config is not None else self.config
        loaded = config.load_hooks()
        for entry, hook in loaded:
            self.register(entry.phase, entry.method, hook)
        if loaded:
            logger.info("Registered %d hook(s) from %s", len(loaded), config.config_path)
        return len(loaded)

    def before_hooks(self, method_name: str) -> tuple[Hook, ...]:
        return self._before.get(method_name)

    def after_hooks(self, method_name: str) -> tuple[Hook, ...]:
        return self._after.get(method_name)

    def is_wrapped(self, method_name: str) -> bool:
        return self._installer.is_wrapped(method_name)

    def original_handler(self, method_name: str) -> Handler | None:
        """Handler the method had before it was wrapped, or None if not wrapped."""
        return self._installer.original(method_name)

    def hooked_methods(self) -> list[str]:
        """Names of methods with at least one hook, wrapped or not."""
        names = dict.fromkeys(self._before.method_names())
        names.update(dict.fromkeys(self._after.method_names()))
        return list(names)

    def to_ascii(self) -> str:
        """Render the hook chains of every hooked method.

        Returns:
            ASCII art string, one box per method
        """
        lines: list[str] = []
        for method_name in self.hooked_methods():
            status = "wrapped" if self.is_wrapped(method_name) else "pending"
            lines.append(f"┌{'─' * 40}┐")
            lines.append(f"│ {method_name + ' (' + status + ')':<38} │")
            for before_hook in self._before.get(method_name):
                lines.append(f"│   before: {hook_name(before_hook):<28} │")
            lines.append(f"│   {'<original>':<36} │")
            for after_hook in self._after.get(method_name):
                lines.append(f"│   after: {hook_name(after_hook):<29} │")
            lines.append(f"└{'─' * 40}┘")
        return "\n".join(lines)
