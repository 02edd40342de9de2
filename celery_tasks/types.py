from collections.abc import Callable
from typing import Any, Protocol, TypeVar, cast

from celery import shared_task

F = TypeVar("F", bound=Callable[..., Any])


class CeleryTask(Protocol):
    """The part of a Celery task the web process uses."""

    def delay(self, *args: Any, **kwargs: Any) -> Any: ...


def typed_shared_task(**options: Any) -> Callable[[F], F]:
    """shared_task that leaves the decorated function's signature to type checkers."""

    def decorator(func: F) -> F:
        return cast(F, shared_task(**options)(func))

    return decorator
