"""Errors raised while decoding CLEF documents."""
from __future__ import annotations


class InvalidDataError(ValueError):
    """The input is not valid compact-JSON log event data.

    Carries the 1-based line number the problem was found on and, where one
    is to blame, the name of the offending field.
    """

    def __init__(
        self,
        message: str,
        line_number: int | None = None,
        field: str | None = None,
    ) -> None:
        super().__init__(message)
        self.line_number = line_number
        self.field = field
