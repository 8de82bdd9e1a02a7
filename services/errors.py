"""Domain errors raised by the reading service."""

from __future__ import annotations

from typing import Sequence


class ReadingValidationError(ValueError):
    """A new reading was rejected before reaching the store."""

    def __init__(self, message: str, fields: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.fields = tuple(fields)


class BinNotFoundError(KeyError):
    """No readings exist for the requested bin."""

    def __init__(self, bin_id: str) -> None:
        super().__init__(bin_id)
        self.bin_id = bin_id

    def __str__(self) -> str:
        return f"No readings found for bin {self.bin_id!r}."
