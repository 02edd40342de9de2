from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from typing import Any

from fastapi import FastAPI

Dependency = Callable[..., Any]


class DependencyOverrides:
    """Dependency overrides on one app, all undone by reset()."""

    def __init__(self, app: FastAPI) -> None:
        self._app = app
        self._saved: dict[Dependency, Dependency | None] = {}

    def set(self, dependency: Dependency, override: Dependency) -> None:
        self._saved.setdefault(dependency, self._app.dependency_overrides.get(dependency))
        self._app.dependency_overrides[dependency] = override

    def value(self, dependency: Dependency, value: Any) -> None:
        self.set(dependency, lambda: value)

    def yielded_value(self, dependency: Dependency, value: Any) -> None:
        """Like value(), for dependencies that are generators."""

        async def provide() -> AsyncGenerator[Any]:
            yield value

        self.set(dependency, provide)

    def reset(self) -> None:
        overrides = self._app.dependency_overrides
        for dependency, saved in self._saved.items():
            if saved is None:
                overrides.pop(dependency, None)
            else:
                overrides[dependency] = saved
        self._saved.clear()
