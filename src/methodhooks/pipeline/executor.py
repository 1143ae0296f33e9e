"""Invocation pipeline installed in place of a method handler.

Each call walks the before chain, the original handler and the after chain
in strict sequence on the caller's own thread (or task, for coroutine
handlers).
"""

from __future__ import annotations

import functools
import inspect
import logging
from typing import TYPE_CHECKING, Any

from methodhooks.pipeline.context import InvocationContext
from methodhooks.pipeline.hook import hook_name

if TYPE_CHECKING:
    from methodhooks.pipeline.hook import Handler, Hook, HookRegistry

logger = logging.getLogger(__name__)

MISSING_RESULT_MESSAGE = "Expected the after hook to return a value."


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _context_chain(error: BaseException) -> list[BaseException]:
    """The error followed by its ``__context__`` links, stopping at a cycle."""
    chain: list[BaseException] = []
    current: BaseException | None = error
    while current is not None and all(current is not seen for seen in chain):
        chain.append(current)
        current = current.__context__
    return chain


def _attach_pending_error(hook_error: BaseException, method_error: BaseException | None) -> None:
    """Keep a pending handler error reachable from an after hook's own error.

    The handler error is linked at the end of the hook error's context chain,
    so a context the hook error already carries is kept as well.
    """
    if method_error is None:
        return
    chain = _context_chain(hook_error)
    if any(error is method_error for error in chain):
        return
    tail = chain[-1]
    # Linking would close a loop if the handler error leads back to the hook error
    if tail.__context__ is not None or any(error is tail for error in _context_chain(method_error)):
        return
    tail.__context__ = method_error


def is_async_callable(fn: Any) -> bool:
    """True for coroutine functions and objects with an ``async def __call__``."""
    return inspect.iscoroutinefunction(fn) or inspect.iscoroutinefunction(getattr(fn, "__call__", None))


def _reject_awaitable(value: Any, hook: Hook, method_name: str) -> None:
    if not inspect.isawaitable(value):
        return
    if inspect.iscoroutine(value):
        value.close()
    raise TypeError(
        f"Hook '{hook_name(hook)}' for method '{method_name}' returned an awaitable, "
        "but the method is synchronous; register a plain function instead"
    )


class InvocationPipeline:
    """Runs the hook chains of one method around its original handler.

    Chains are read from the registries at the start of each call, so hooks
    registered after the wrapper was installed still run on later calls.

    Attributes:
        method_name: Name of the wrapped method
        original: Handler captured from the method table before wrapping
        before_hooks: Registry of before hooks
        after_hooks: Registry of after hooks
        missing_result_level: Log level for after hooks that drop the result
    """

    def __init__(
        self,
        method_name: str,
        original: Handler,
        before_hooks: HookRegistry,
        after_hooks: HookRegistry,
        missing_result_level: int = logging.WARNING,
    ) -> None:
        self.method_name = method_name
        self.original = original
        self.before_hooks = before_hooks
        self.after_hooks = after_hooks
        self.missing_result_level = missing_result_level

    def _context(
        self,
        args: list[Any],
        kwargs: dict[str, Any],
        hooks_processed: int,
        result: Any = None,
        error: BaseException | None = None,
    ) -> InvocationContext:
        return InvocationContext(
            result=result,
            error=error,
            arguments=args,
            kwargs=kwargs,
            hooks_processed=hooks_processed,
            method_name=self.method_name,
        )

    def _apply_after_result(self, hook: Hook, method_result: Any, hook_result: Any) -> Any:
        """Decide the method result after an after hook returned.

        A hook returning None while a result exists almost always forgot to
        pass the result through; the previous result is kept.
        """
        if hook_result is None and method_result is not None:
            logger.log(
                self.missing_result_level,
                "%s (method '%s', hook '%s')",
                MISSING_RESULT_MESSAGE,
                self.method_name,
                hook_name(hook),
            )
            return method_result
        return hook_result

    def execute(self, invocation: Any, *args: Any, **kwargs: Any) -> Any:
        """Invoke the method through its hook chains.

        Args:
            invocation: Calling context supplied by the host, passed through to
                hooks and to the original handler
            *args: Positional call arguments
            **kwargs: Keyword call arguments

        Returns:
            The original handler's result, as rewritten by after hooks

        Raises:
            Exception: The original handler's error, after all after hooks ran,
                or any error raised by a hook
            TypeError: If a hook returns an awaitable; coroutine hooks are only
                supported on coroutine handlers
        """
        call_args = list(args)
        call_kwargs = dict(kwargs)

        for index, before_hook in enumerate(self.before_hooks.get(self.method_name)):
            hook_result = before_hook(invocation, self._context(call_args, call_kwargs, index))
            _reject_awaitable(hook_result, before_hook, self.method_name)

        method_result: Any = None
        method_error: Exception | None = None

        # The handler error is held rather than raised so that every after
        # hook observes it. It is re-raised unchanged once the chain is done.
        try:
            method_result = self.original(invocation, *call_args, **call_kwargs)
        except Exception as e:
            method_error = e

        try:
            for index, after_hook in enumerate(self.after_hooks.get(self.method_name)):
                ctx = self._context(call_args, call_kwargs, index, method_result, method_error)
                hook_result = after_hook(invocation, ctx)
                _reject_awaitable(hook_result, after_hook, self.method_name)
                method_result = self._apply_after_result(after_hook, method_result, hook_result)
        except Exception as e:
            # A failing after hook replaces the pending handler error and
            # stops the remaining after hooks.
            _attach_pending_error(e, method_error)
            raise

        if method_error is not None:
            raise method_error

        return method_result

    async def execute_async(self, invocation: Any, *args: Any, **kwargs: Any) -> Any:
        """Coroutine version of :meth:`execute` for async handlers.

        Hooks may be plain functions or coroutine functions; an awaitable
        returned by a hook is awaited before the next hook runs.
        """
        call_args = list(args)
        call_kwargs = dict(kwargs)

        for index, before_hook in enumerate(self.before_hooks.get(self.method_name)):
            await _resolve(before_hook(invocation, self._context(call_args, call_kwargs, index)))

        method_result: Any = None
        method_error: Exception | None = None

        # Held until the after chain has run, same as the sync path.
        try:
            method_result = await _resolve(self.original(invocation, *call_args, **call_kwargs))
        except Exception as e:
            method_error = e

        try:
            for index, after_hook in enumerate(self.after_hooks.get(self.method_name)):
                ctx = self._context(call_args, call_kwargs, index, method_result, method_error)
                hook_result = await _resolve(after_hook(invocation, ctx))
                method_result = self._apply_after_result(after_hook, method_result, hook_result)
        except Exception as e:
            _attach_pending_error(e, method_error)
            raise

        if method_error is not None:
            raise method_error

        return method_result


def build_wrapper(pipeline: InvocationPipeline) -> Handler:
    """Build the callable that replaces the original in the method table.

    The wrapper copies the original's metadata. It is a coroutine function
    when the original is a coroutine function or a callable object with an
    ``async def __call__``.

    Args:
        pipeline: Pipeline bound to the original handler

    Returns:
        Wrapper callable with the host's handler calling convention
    """
    original = pipeline.original

    if is_async_callable(original):

        @functools.wraps(original)
        async def async_wrapper(invocation: Any, *args: Any, **kwargs: Any) -> Any:
            return await pipeline.execute_async(invocation, *args, **kwargs)

        async_wrapper._method_pipeline = pipeline  # type: ignore[attr-defined]
        return async_wrapper

    @functools.wraps(original)
    def wrapper(invocation: Any, *args: Any, **kwargs: Any) -> Any:
        return pipeline.execute(invocation, *args, **kwargs)

    wrapper._method_pipeline = pipeline  # type: ignore[attr-defined]
    return wrapper
