"""Offset-driven reader that maps a `.prog_bin` buffer onto a layout table.

No interpretation happens here: a header full of garbage is read just like
``PROG``; `prog.normalize` decides what the values mean.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, List, Mapping, Tuple

from .errors import TruncatedInput
from .layout import ASCII, SKIP, Layout, Placement


logger = logging.getLogger(__name__)


class BitCursor:
    """Forward-only cursor over a byte buffer with bit granularity."""

    def __init__(self, data: bytes) -> None:
        self.data = data
        self.pos = 0  # in bits

    @property
    def remaining_bits(self) -> int:
        return len(self.data) * 8 - self.pos

    def _need(self, bits: int) -> None:
        if bits > self.remaining_bits:
            raise EOFError(
                f"need {bits} bits at bit {self.pos}, only {self.remaining_bits} left"
            )

    def read_bits(self, count: int) -> int:
        """Read `count` bits MSB-first; the bits must not straddle a byte."""
        offset, used = divmod(self.pos, 8)
        if count < 1 or used + count > 8:
            raise ValueError(f"cannot read {count} bits at bit {used} of byte {offset}")
        self._need(count)
        shift = 8 - used - count
        value = (self.data[offset] >> shift) & ((1 << count) - 1)
        self.pos += count
        return value

    def read_bytes(self, count: int) -> bytes:
        offset, used = divmod(self.pos, 8)
        if used:
            raise ValueError(f"byte read at bit {used} of byte {offset} is unaligned")
        self._need(count * 8)
        self.pos += count * 8
        return bytes(self.data[offset : offset + count])

    def skip(self, bits: int) -> None:
        self._need(bits)
        self.pos += bits


@dataclass(frozen=True)
class RawProgram:
    """Byte-exact view of one program: field name -> str | int."""

    layout: Layout
    values: Mapping[str, str | int] = field(repr=False)

    @property
    def version(self) -> str:
        return self.layout.version

    @property
    def placements(self) -> Tuple[Placement, ...]:
        return self.layout.placements()

    def __getitem__(self, name: str) -> str | int:
        return self.values[name]

    def __contains__(self, name: object) -> bool:
        return name in self.values

    def get(self, name: str, default: str | int | None = None) -> str | int | None:
        return self.values.get(name, default)

    def items(self) -> Iterator[Tuple[str, str | int]]:
        return iter(self.values.items())


def _truncation(layout: Layout, available: int) -> TruncatedInput:
    last_field: str | None = None
    missing: List[str] = []
    for p in layout.placements():
        if p.name is None:
            continue
        if p.end <= available and not missing:
            last_field = p.name
        else:
            missing.append(p.name)
    return TruncatedInput(
        version=layout.version,
        needed=layout.size,
        available=available,
        last_field=last_field,
        missing=missing,
    )


def read_program(data: bytes, layout: Layout) -> RawProgram:
    """Read every field of `layout` from `data` in ascending offset order.

    Raises `TruncatedInput` (and returns nothing) when `data` is shorter
    than the layout; trailing bytes past the layout are ignored.
    """
    if len(data) < layout.size:
        raise _truncation(layout, len(data))

    logger.debug("reading %s layout (%d of %d bytes)", layout.version, layout.size, len(data))
    cursor = BitCursor(data)
    values: dict[str, str | int] = {}
    for p in layout.placements():
        if p.kind == SKIP:
            cursor.skip(p.bits)
        elif p.kind == ASCII:
            values[p.name] = cursor.read_bytes(p.bits // 8).decode("ascii", errors="replace")
        elif p.is_packed:
            values[p.name] = cursor.read_bits(p.bits)
        else:
            values[p.name] = int.from_bytes(
                cursor.read_bytes(p.bits // 8), layout.endian, signed=False
            )
    return RawProgram(layout=layout, values=MappingProxyType(values))
