from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence


class ProgramError(ValueError):
    """Base class for fatal `.prog_bin` decode failures."""


class TruncatedInput(ProgramError):
    def __init__(
        self,
        *,
        version: str,
        needed: int,
        available: int,
        last_field: str | None,
        missing: Sequence[str],
    ) -> None:
        self.version = version
        self.needed = needed
        self.available = available
        self.last_field = last_field
        self.missing = tuple(missing)
        self.field = self.missing[0] if self.missing else None
        after = f"after {last_field!r}" if last_field is not None else "before the first field"
        super().__init__(
            f"{version} program truncated {after} "
            f"({available} bytes, need {needed}); "
            f"could not read {self.field!r}"
        )


class InvalidFormat(ProgramError):
    def __init__(self, header: str, expected: str) -> None:
        self.header = header
        self.expected = expected
        super().__init__(f"bad header: {header!r} (expected {expected!r})")


@dataclass(frozen=True)
class UnrecognizedCode:
    """A switch field held a code outside its known set; decoding went on."""

    field: str
    code: int
