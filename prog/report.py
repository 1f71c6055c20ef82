"""Display strings and the multi-section text report."""

from __future__ import annotations

import math
from enum import Enum
from typing import Callable, List, Optional, Tuple

from .normalize import (
    FilterType,
    Level,
    LfoEgMod,
    LfoTarget,
    SemanticProgram,
    Switch,
    Wave,
)
from .reader import RawProgram


ABSENT = ""

PITCH_CENTS = 1200
EG_INT_CENTS = 4800

ENUM_LABELS = {
    Wave.SQUARE: "Square",
    Wave.TRIANGLE: "Triangle",
    Wave.SAW: "Saw",
    Switch.OFF: "Off",
    Switch.ON: "On",
    FilterType.TWO_POLE: "2-Pole",
    FilterType.FOUR_POLE: "4-Pole",
    LfoEgMod.OFF: "Off",
    LfoEgMod.RATE: "Rate",
    LfoEgMod.INT: "Int",
    LfoTarget.CUTOFF: "Cutoff",
    LfoTarget.SHAPE: "Shape",
    LfoTarget.PITCH: "Pitch",
}


def _scalar(value: object) -> Optional[float]:
    """Unwrap enum members (UNKNOWN -> None) so numeric formatters can share them."""
    if isinstance(value, Enum):
        value = value.value
    if value is None or isinstance(value, bool):
        return None
    return float(value)


def round_half_away(value: float) -> int:
    """Round to the nearest integer, .5 away from zero (-112.5 -> -113)."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def format_percent(value: float | Level | None) -> str:
    scalar = _scalar(value)
    if scalar is None:
        return ABSENT
    return f"{round_half_away(scalar * 100)}%"


def format_cents(value: float | None, scale: int = PITCH_CENTS) -> str:
    scalar = _scalar(value)
    if scalar is None:
        return ABSENT
    return f"{round_half_away(scalar * scale)}C"


def format_enum(value: Enum | None) -> str:
    if value is None:
        return ABSENT
    if isinstance(value, Level):
        return format_percent(value)
    return ENUM_LABELS.get(value, ABSENT)


def format_octave(value: int | None) -> str:
    return ABSENT if value is None else str(value)


def format_tempo(value: float | None) -> str:
    return ABSENT if value is None else f"{value:.1f}"


def format_text(value: str | None) -> str:
    return ABSENT if value is None else value


def _cents(scale: int) -> Callable[[float | None], str]:
    return lambda value: format_cents(value, scale)


Formatter = Callable[..., str]

# (title, [(label, attribute, formatter), ...]) in report order.
REPORT_LAYOUT: List[Tuple[str, List[Tuple[str, str, Formatter]]]] = [
    (
        "Program",
        [
            ("Name", "program_name", format_text),
            ("Octave", "octave", format_octave),
            ("Tempo", "tempo", format_tempo),
        ],
    ),
    (
        "VCO 1",
        [
            ("Wave", "vco1_wave", format_enum),
            ("Octave", "vco1_octave", format_octave),
            ("Pitch", "vco1_pitch", _cents(PITCH_CENTS)),
            ("Shape", "vco1_shape", format_percent),
        ],
    ),
    (
        "VCO 2",
        [
            ("Wave", "vco2_wave", format_enum),
            ("Octave", "vco2_octave", format_octave),
            ("Pitch", "vco2_pitch", _cents(PITCH_CENTS)),
            ("Shape", "vco2_shape", format_percent),
            ("Cross Mod Depth", "cross_mod_depth", format_percent),
            ("Pitch EG Int", "vco2_pitch_eg_int", _cents(EG_INT_CENTS)),
            ("Sync", "sync", format_enum),
            ("Ring", "ring", format_enum),
        ],
    ),
    (
        "Mixer",
        [
            ("VCO 1", "vco1_level", format_percent),
            ("VCO 2", "vco2_level", format_percent),
            ("Noise", "noise_level", format_percent),
        ],
    ),
    (
        "Filter",
        [
            ("Cutoff", "cutoff", format_percent),
            ("Resonance", "resonance", format_percent),
            ("EG Int", "cutoff_eg_int", _cents(EG_INT_CENTS)),
            ("Type", "cutoff_type", format_enum),
            ("Key Track", "cutoff_keytrack", format_percent),
            ("Velocity", "cutoff_velocity", format_percent),
        ],
    ),
    (
        "Amp EG",
        [
            ("Attack", "amp_eg_attack", format_percent),
            ("Decay", "amp_eg_decay", format_percent),
            ("Sustain", "amp_eg_sustain", format_percent),
            ("Release", "amp_eg_release", format_percent),
        ],
    ),
    (
        "EG",
        [
            ("Attack", "eg_attack", format_percent),
            ("Decay", "eg_decay", format_percent),
            ("Sustain", "eg_sustain", format_percent),
            ("Release", "eg_release", format_percent),
        ],
    ),
    (
        "LFO",
        [
            ("Wave", "lfo_wave", format_enum),
            ("EG Mod", "lfo_eg_mod", format_enum),
            ("Rate", "lfo_rate", format_percent),
            ("Int", "lfo_int", format_percent),
            ("Target", "lfo_target", format_enum),
        ],
    ),
]


def format_field(program: SemanticProgram, name: str) -> str:
    """Display string for one attribute of `program`, using its report formatter."""
    for _, rows in REPORT_LAYOUT:
        for _, attr, formatter in rows:
            if attr == name:
                return formatter(getattr(program, attr))
    raise KeyError(f"no display rule for field {name!r}")


def report_sections(
    program: SemanticProgram,
) -> List[Tuple[str, List[Tuple[str, str]]]]:
    sections: List[Tuple[str, List[Tuple[str, str]]]] = []
    for title, rows in REPORT_LAYOUT:
        lines = [
            (label, formatter(getattr(program, attr)))
            for label, attr, formatter in rows
            if getattr(program, attr) is not None
        ]
        if lines:
            sections.append((title, lines))
    return sections


def render_report(program: SemanticProgram) -> str:
    blocks = []
    for title, lines in report_sections(program):
        body = "\n".join(f"  {label:<16}{text}".rstrip() for label, text in lines)
        blocks.append(f"{title}\n{body}")
    return "\n\n".join(blocks) + "\n"


def format_raw(raw: RawProgram) -> str:
    """One line per layout entry: offset, bit range, name and raw value."""
    lines = [f"{raw.version} ({raw.layout.size} bytes, {raw.layout.endian}-endian)"]
    for p in raw.placements:
        if p.name is None:
            value = "-"
        else:
            stored = raw[p.name]
            if isinstance(stored, str):
                value = repr(stored)
            else:
                digits = max(2, (p.bits + 3) // 4)
                value = f"0x{stored:0{digits}X} ({stored})"
        lines.append(f"0x{p.offset:04X}  {p.bit_range():<5} {p.name or '(skip)':<18} {value}")
    return "\n".join(lines) + "\n"
