# missing_exports/errors.py
"""
Error types for the missing-exports resolver and its collaborators.

The resolution pass itself has no failure channel: every odd case it meets
(default exports, disabled synthesis, unowned reflections) is a policy
branch.  The exceptions below are raised by the pieces around it: option
handling, the converter context, and the JSON model loader.

Error Hierarchy:
────────────────
┌──────────────────────────────────────────────────────────────┐
│  MissingExportsError (base)                                  │
│  ├── OptionError       - Unknown option / badly typed value  │
│  ├── ContextError      - Context used outside a conversion   │
│  └── ModelError        - Malformed JSON model document       │
│      └── TypeSyntaxError - Unparseable type expression       │
└──────────────────────────────────────────────────────────────┘
"""

from __future__ import annotations

from typing import Optional

__all__ = [
    "MissingExportsError",
    "OptionError",
    "ContextError",
    "ModelError",
    "TypeSyntaxError",
]


class MissingExportsError(Exception):
    """Base exception for all missing-exports errors."""

    def __init__(self, message: str, hint: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint

    def with_hint(self, hint: str) -> "MissingExportsError":
        self.hint = hint
        return self

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message


class OptionError(MissingExportsError):
    """An option was unknown or assigned a value of the wrong type."""

    def __init__(self, message: str, option: str = "", **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.option = option


class ContextError(MissingExportsError):
    """The converter context was used in a state that does not allow it.

    Raised most notably when symbol conversion is attempted while no
    compiler program is active.
    """


class ModelError(MissingExportsError):
    """A model document could not be turned into a documentation tree."""

    def __init__(self, message: str, path: str = "", **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.path = path

    def __str__(self) -> str:
        text = super().__str__()
        if self.path:
            return f"{self.path}: {text}"
        return text


class TypeSyntaxError(ModelError):
    """A type expression in the model could not be parsed."""

    def __init__(
        self,
        message: str,
        text: str = "",
        position: Optional[int] = None,
        **kwargs,
    ) -> None:
        super().__init__(message, **kwargs)
        self.text = text
        self.position = position

    def __str__(self) -> str:
        text = super().__str__()
        if self.position is not None:
            return f"{text}\n    {self.text}\n    {' ' * self.position}^"
        return text
