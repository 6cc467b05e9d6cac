"""Tool registration and dispatch primitives."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

ToolHandler = Callable[[dict[str, object]], dict[str, object]]


@dataclass(slots=True, frozen=True)
class ToolDispatchError(Exception):
    """Tool failure carrying a stable error code for the response envelope."""

    code: str
    message: str


@dataclass(slots=True)
class ToolRegistry:
    """Named tool handlers kept in registration order."""

    _handlers: dict[str, ToolHandler] = field(default_factory=dict)

    def register(self, name: str, handler: ToolHandler) -> None:
        """Register a handler under a name that is not yet taken."""
        if name in self._handlers:
            raise ValueError(f"Tool already registered: {name}")
        self._handlers[name] = handler

    def get(self, name: str) -> ToolHandler | None:
        return self._handlers.get(name)

    def names(self) -> tuple[str, ...]:
        """Return tool names in registration order."""
        return tuple(self._handlers)

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def dispatch(self, name: str, arguments: dict[str, object]) -> dict[str, object]:
        """Run the named handler; unknown names raise `UNKNOWN_TOOL`."""
        handler = self._handlers.get(name)
        if handler is None:
            raise ToolDispatchError(code="UNKNOWN_TOOL", message=f"Unknown tool: {name}")
        return handler(arguments)
