"""Exception types raised by the funcviz pipeline.

``MalformedAnnotation`` never escapes the annotation parser: a broken
directive just means the declaration is not a parameter. ``CompileError`` and
``EvaluationError`` are the two user-visible failures; the session turns either
into a single message string for the current pass.
"""

from __future__ import annotations

from typing import Optional


class FuncvizError(Exception):
    """Base class for all funcviz errors."""


class MalformedAnnotation(FuncvizError, ValueError):
    """A ``range(...)``/``checkbox`` directive that cannot describe a parameter."""

    def __init__(self, message: str, *, name: str = "", lineno: int = 0) -> None:
        super().__init__(message)
        self.name = name
        self.lineno = lineno


class SnippetError(FuncvizError):
    """A failure of the user's snippet, reported as one human-readable message.

    Parameters
    ----------
    message : str
        Text shown to the user.
    lineno : int, optional
        1-based snippet line the failure points at, when known.
    """

    def __init__(self, message: str, *, lineno: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.lineno = lineno

    def __str__(self) -> str:
        if self.lineno is None:
            return self.message
        return f"{self.message} (line {self.lineno})"


class CompileError(SnippetError):
    """The snippet does not parse or compile."""


class EvaluationError(SnippetError):
    """The snippet raised, or returned something that is not a number or list of numbers."""

    def __init__(
        self,
        message: str,
        *,
        x: Optional[float] = None,
        lineno: Optional[int] = None,
    ) -> None:
        super().__init__(message, lineno=lineno)
        self.x = x

    def __str__(self) -> str:
        text = super().__str__()
        if self.x is None:
            return text
        return f"{text} at x={self.x:g}"


__all__ = [
    "CompileError",
    "EvaluationError",
    "FuncvizError",
    "MalformedAnnotation",
    "SnippetError",
]
