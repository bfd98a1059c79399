"""Exceptions raised by the jianpu package."""

from __future__ import annotations

from typing import Any


class InvalidNotationError(ValueError):
    """
    A parsed node carries a value the timeline arithmetic cannot use.

    Raised for a zero tempo or a zero time-signature unit, which would
    otherwise turn every following duration into inf or NaN.
    """

    def __init__(self, message: str, node: Any = None) -> None:
        position = getattr(node, "position", None)
        if position is not None:
            message = f"{message} (line {position.line}, column {position.column})"
        super().__init__(message)
        self.node = node
