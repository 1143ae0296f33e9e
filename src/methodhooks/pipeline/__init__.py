"""Invocation pipeline for hooked methods.

Model:
    For a method m with before chain b₀..bₙ, original handler f and
    after chain a₀..aₘ, a call m(inv, args) runs

        bᵢ(inv, ctx(args, i))            for i in 0..n
        r, e = f(inv, *args)             (e held, not raised)
        r = aⱼ(inv, ctx(args, j, r, e))  for j in 0..m
        raise e if e else return r
"""

from methodhooks.pipeline.context import InvocationContext
from methodhooks.pipeline.executor import InvocationPipeline, build_wrapper
from methodhooks.pipeline.hook import Handler, Hook, HookPhase, HookRegistry

__all__ = [
    "InvocationContext",
    "InvocationPipeline",
    "build_wrapper",
    "Handler",
    "Hook",
    "HookPhase",
    "HookRegistry",
]
