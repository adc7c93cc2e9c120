"""Composition of outbound-call interceptors."""

from __future__ import annotations

from typing import Iterable

from core.ports import Call, Interceptor


def chain(call: Call, interceptors: Iterable[Interceptor]) -> Call:
    """Wrap ``call`` so the first interceptor runs outermost.

    ``chain(send, [limiter, waiter])`` acquires a rate token first, then waits
    out any pending flood delay, then sends.
    """

    wrapped = call
    for interceptor in reversed(list(interceptors)):
        wrapped = interceptor.wrap(wrapped)
    return wrapped
