"""Versioned field tables for `.prog_bin` program files.

Each layout is an ordered list of fields.  Offsets are never written down
by hand; they fall out of summing widths, so `placements()` is the single
source for "where does field X live":

  - ``ascii`` fields are byte-aligned, whole-byte strings
  - ``uint`` fields are either a whole number of bytes starting on a byte
    boundary (multi-byte values use the layout's endianness) or a packed
    sub-byte field that stays inside one byte
  - ``skip`` entries are declared gaps with no name and no output

Packed fields fill a byte from the most significant bit down.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Literal, Tuple


MAGIC = "PROG"

ASCII = "ascii"
UINT = "uint"
SKIP = "skip"
FIELD_KINDS = frozenset({ASCII, UINT, SKIP})


@dataclass(frozen=True)
class Field:
    name: str | None
    bits: int
    kind: str = UINT


@dataclass(frozen=True)
class Placement:
    """A field pinned to its absolute position in the file."""

    name: str | None
    offset: int  # byte offset
    bit: int  # highest bit occupied within the byte at `offset` (7 = MSB)
    bits: int
    kind: str

    @property
    def is_packed(self) -> bool:
        return self.bits % 8 != 0 or self.bit != 7

    @property
    def end(self) -> int:
        """Number of bytes the buffer must hold for this field to be readable."""
        start_bit = self.offset * 8 + (7 - self.bit)
        return (start_bit + self.bits + 7) // 8

    def bit_range(self) -> str:
        if not self.is_packed:
            return f"{self.bits // 8}B"
        low = self.bit - self.bits + 1
        return f"{self.bit}" if self.bits == 1 else f"{self.bit}-{low}"


def _ascii(name: str, length: int) -> Field:
    return Field(name, length * 8, ASCII)


def _u8(name: str) -> Field:
    return Field(name, 8)


def _skip(bits: int) -> Field:
    return Field(None, bits, SKIP)


class Layout:
    def __init__(
        self,
        version: str,
        fields: List[Field] | Tuple[Field, ...],
        *,
        endian: Literal["big", "little"] = "little",
        description: str = "",
    ) -> None:
        self.version = version
        self.fields = tuple(fields)
        self.endian = endian
        self.description = description
        self._placements = self._place()

    def _place(self) -> Tuple[Placement, ...]:
        if self.endian not in ("big", "little"):
            raise ValueError(f"{self.version}: unknown endian {self.endian!r}")

        placed: List[Placement] = []
        seen: set[str] = set()
        pos = 0
        for field in self.fields:
            if field.kind not in FIELD_KINDS:
                raise ValueError(f"{self.version}: unknown field kind {field.kind!r}")
            if field.bits <= 0:
                raise ValueError(f"{self.version}: field {field.name!r} has no width")
            if field.kind == SKIP:
                if field.name is not None:
                    raise ValueError(f"{self.version}: skip entries are unnamed")
            elif not field.name:
                raise ValueError(f"{self.version}: {field.kind} field needs a name")
            elif field.name in seen:
                raise ValueError(f"{self.version}: duplicate field {field.name!r}")
            else:
                seen.add(field.name)

            offset, used = divmod(pos, 8)
            aligned = used == 0 and field.bits % 8 == 0
            if field.kind == ASCII and not aligned:
                raise ValueError(
                    f"{self.version}: ascii field {field.name!r} must be byte-aligned"
                )
            if not aligned and used + field.bits > 8:
                raise ValueError(
                    f"{self.version}: field {field.name or '(skip)'} at byte {offset} "
                    f"crosses a byte boundary"
                )
            placed.append(
                Placement(
                    name=field.name,
                    offset=offset,
                    bit=7 - used,
                    bits=field.bits,
                    kind=field.kind,
                )
            )
            pos += field.bits

        if pos % 8:
            raise ValueError(f"{self.version}: layout ends mid-byte ({pos} bits)")
        self.size = pos // 8
        return tuple(placed)

    def placements(self) -> Tuple[Placement, ...]:
        return self._placements

    def field_names(self) -> List[str]:
        return [p.name for p in self._placements if p.name is not None]

    def placement(self, name: str) -> Placement:
        for p in self._placements:
            if p.name == name:
                return p
        raise KeyError(f"{self.version} layout has no field {name!r}")

    def __contains__(self, name: object) -> bool:
        return any(p.name == name for p in self._placements)

    def __repr__(self) -> str:
        return f"Layout({self.version!r}, size={self.size}, endian={self.endian!r})"


MINIMAL = Layout(
    "minimal",
    [
        _ascii("header", 4),
        _ascii("program_name", 16),
        _skip(16),
        Field("vco1_wave", 2),
        _skip(2),
        Field("vco1_octave", 2),
        _skip(2),
    ],
    endian="big",
    description="single oscillator: name, wave and octave only",
)

FULL = Layout(
    "full",
    [
        _ascii("header", 4),
        _ascii("program_name", 16),
        _u8("vco1_pitch"),
        _u8("vco1_shape"),
        _u8("vco2_pitch"),
        _u8("vco2_shape"),
        _u8("cross_mod_depth"),
        _u8("vco2_pitch_eg_int"),
        _u8("vco1_level"),
        _u8("vco2_level"),
        _u8("noise_level"),
        _u8("cutoff"),
        _u8("resonance"),
        _u8("cutoff_eg_int"),
        _skip(16),
        _u8("amp_eg_attack"),
        _u8("amp_eg_decay"),
        _u8("amp_eg_sustain"),
        _u8("amp_eg_release"),
        _u8("eg_attack"),
        _u8("eg_decay"),
        _u8("eg_sustain"),
        _u8("eg_release"),
        _u8("lfo_rate"),
        _u8("lfo_int"),
        _skip(64),
        # 0x34
        Field("vco1_wave", 2),
        Field("vco1_octave", 2),
        Field("vco2_wave", 2),
        Field("vco2_octave", 2),
        # 0x35
        Field("sync", 1),
        Field("ring", 1),
        _skip(1),
        Field("cutoff_type", 1),
        Field("cutoff_keytrack", 2),
        Field("cutoff_velocity", 2),
        # 0x36
        Field("lfo_eg_mod", 2),
        Field("lfo_target", 2),
        Field("lfo_wave", 2),
        _skip(2),
        # 0x37
        _skip(5),
        Field("octave", 3),
        _skip(44 * 8),
        Field("tempo", 16),
    ],
    endian="little",
    description="dual oscillator with mixer, filter, envelopes, LFO and tempo",
)

LAYOUTS: Dict[str, Layout] = {layout.version: layout for layout in (MINIMAL, FULL)}


def get_layout(version: str) -> Layout:
    try:
        return LAYOUTS[version]
    except KeyError:
        known = ", ".join(sorted(LAYOUTS))
        raise KeyError(f"unknown layout {version!r} (known: {known})") from None


def detect_layout(data: bytes) -> Layout:
    """Pick a layout from the buffer length.

    Only buffers no longer than a minimal program are read as ``minimal``;
    anything longer is read as ``full`` so a cut-off full program fails
    with `TruncatedInput` instead of decoding as the wrong layout.
    """
    if len(data) <= MINIMAL.size:
        return MINIMAL
    return FULL


def describe_layout(layout: Layout) -> str:
    lines = [
        f"{layout.version}: {layout.size} bytes, {layout.endian}-endian"
        + (f" ({layout.description})" if layout.description else ""),
        f"{'offset':>6}  {'bits':<5} {'kind':<5} name",
    ]
    for p in layout.placements():
        lines.append(
            f"0x{p.offset:04X}  {p.bit_range():<5} {p.kind:<5} {p.name or '-'}"
        )
    return "\n".join(lines) + "\n"
