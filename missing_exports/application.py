# missing_exports/application.py
"""
Application shell: option registry and converter event bus.

Plugins receive an :class:`Application` in their ``load`` hook, declare
their options on ``app.options`` and subscribe to converter events on
``app.converter``.  Events are delivered to listeners in descending
priority order; listeners with equal priority run in subscription order.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Tuple

from missing_exports.context import Context
from missing_exports.errors import OptionError
from missing_exports.models import ProjectReflection

__all__ = [
    "ParameterType",
    "OptionDeclaration",
    "Options",
    "Converter",
    "Application",
]

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------

class ParameterType(enum.Enum):
    STRING = "string"
    BOOLEAN = "boolean"


_PYTHON_TYPES = {
    ParameterType.STRING: str,
    ParameterType.BOOLEAN: bool,
}


@dataclass(frozen=True)
class OptionDeclaration:
    name: str
    help: str
    type: ParameterType = ParameterType.STRING
    default_value: Any = None

    def validate(self, value: Any) -> Any:
        expected = _PYTHON_TYPES[self.type]
        if not isinstance(value, expected):
            raise OptionError(
                f"Option {self.name!r} expects a {self.type.value}, "
                f"got {type(value).__name__} {value!r}",
                option=self.name,
            )
        return value


class Options:
    """Registry of declared options and their current values."""

    def __init__(self) -> None:
        self._declarations: Dict[str, OptionDeclaration] = {}
        self._values: Dict[str, Any] = {}

    def add_declaration(self, declaration: OptionDeclaration) -> None:
        if declaration.name in self._declarations:
            raise OptionError(
                f"Option {declaration.name!r} is already declared",
                option=declaration.name,
            )
        if declaration.default_value is not None:
            declaration.validate(declaration.default_value)
        self._declarations[declaration.name] = declaration

    def get_declaration(self, name: str) -> OptionDeclaration:
        try:
            return self._declarations[name]
        except KeyError:
            raise OptionError(f"Unknown option {name!r}", option=name) from None

    def get_value(self, name: str) -> Any:
        declaration = self.get_declaration(name)
        return self._values.get(name, declaration.default_value)

    def set_value(self, name: str, value: Any) -> None:
        declaration = self.get_declaration(name)
        self._values[name] = declaration.validate(value)
        logger.debug("option %s = %r", name, value)

    def set_values(self, values: Mapping[str, Any]) -> None:
        for name, value in values.items():
            self.set_value(name, value)

    def is_set(self, name: str) -> bool:
        self.get_declaration(name)
        return name in self._values

    def __contains__(self, name: object) -> bool:
        return name in self._declarations


# ---------------------------------------------------------------------------
# Converter events
# ---------------------------------------------------------------------------

Listener = Callable[..., None]


class Converter:
    """Event bus for the conversion pipeline."""

    EVENT_CREATE_DECLARATION = "createDeclaration"
    EVENT_RESOLVE_BEGIN = "resolveBegin"

    def __init__(self, application: "Application") -> None:
        self.application = application
        self._listeners: Dict[str, List[Tuple[float, int, Listener]]] = {}
        self._order = 0

    def on(self, event: str, callback: Listener, priority: float = 0) -> None:
        self._order += 1
        self._listeners.setdefault(event, []).append((priority, self._order, callback))

    def trigger(self, event: str, *args: Any) -> None:
        listeners = sorted(self._listeners.get(event, []), key=lambda e: (-e[0], e[1]))
        for _, _, callback in listeners:
            callback(*args)


class Application:
    """Owns the options and the converter that plugins hook into."""

    def __init__(self) -> None:
        self.options = Options()
        self.converter = Converter(self)

    def create_project(self, name: str) -> Tuple[ProjectReflection, Context]:
        project = ProjectReflection(name)
        return project, Context(project, converter=self.converter)

    def resolve(self, context: Context) -> None:
        """Fire the resolve-begin phase for *context*'s project."""
        logger.info("resolving project %r", context.project.name)
        self.converter.trigger(Converter.EVENT_RESOLVE_BEGIN, context)
