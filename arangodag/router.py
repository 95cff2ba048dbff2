"""Action routing for the arangodag API."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Protocol, Sequence, Tuple


class ActionHandler(Protocol):
    """Protocol representing a callable action handler."""

    def __call__(self, params: dict) -> dict:  # pragma: no cover - interface
        ...


@dataclass(frozen=True)
class Route:
    """A registered handler and the parameters it cannot run without."""

    handler: ActionHandler | Callable[[dict], dict]
    required: Tuple[str, ...] = ()
    mutates: bool = False


@dataclass
class ActionRouter:
    """Dispatch actions to their registered handlers."""

    routes: Dict[str, Route] = field(default_factory=dict)

    def register(
        self,
        action: str,
        handler: ActionHandler | Callable[[dict], dict],
        *,
        required: Sequence[str] = (),
        mutates: bool = False,
    ) -> None:
        """Register ``handler`` under ``action``.

        ``required`` names the parameters that must be present and non-empty;
        ``mutates`` marks actions that write to the graph.
        """

        self.routes[action] = Route(handler, tuple(required), mutates)

    def actions(self) -> list[str]:
        return sorted(self.routes)

    def mutates(self, action: str) -> bool:
        return self._route(action).mutates

    def dispatch(self, action: str, params: dict) -> dict:
        """Validate ``params`` and execute the handler of ``action``."""

        route = self._route(action)
        missing = [name for name in route.required if params.get(name) in (None, "")]
        if missing:
            raise KeyError(f"Action '{action}' requires: {', '.join(missing)}")
        return route.handler(params)

    def _route(self, action: str) -> Route:
        if action not in self.routes:
            raise KeyError(f"Unknown action: {action}")
        return self.routes[action]
