"""Raw codes -> musical values.

Knobs become floats, switch codes become closed enums, and any code a
switch does not know becomes that enum's ``UNKNOWN`` member rather than an
error.  Fields the layout does not carry stay ``None`` on the result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Tuple, Type, TypeVar

from .errors import InvalidFormat, ProgramError, UnrecognizedCode
from .layout import MAGIC
from .reader import RawProgram


logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)


class Wave(Enum):
    SQUARE = "square"
    TRIANGLE = "triangle"
    SAW = "saw"
    UNKNOWN = None


class Switch(Enum):
    OFF = False
    ON = True
    UNKNOWN = None


class FilterType(Enum):
    TWO_POLE = 2
    FOUR_POLE = 4
    UNKNOWN = None


class Level(Enum):
    ZERO = 0.0
    HALF = 0.5
    FULL = 1.0
    UNKNOWN = None


class LfoEgMod(Enum):
    OFF = "off"
    RATE = "rate"
    INT = "int"
    UNKNOWN = None


class LfoTarget(Enum):
    CUTOFF = "cutoff"
    SHAPE = "shape"
    PITCH = "pitch"
    UNKNOWN = None


# The two file revisions disagree on wave numbering; keep them apart.
WAVE_CODES: Dict[str, Dict[int, Wave]] = {
    "minimal": {0: Wave.SAW, 1: Wave.SQUARE, 2: Wave.TRIANGLE},
    "full": {0: Wave.SQUARE, 1: Wave.TRIANGLE, 2: Wave.SAW},
}

SWITCH_CODES = {0: Switch.OFF, 1: Switch.ON}
FILTER_TYPE_CODES = {0: FilterType.TWO_POLE, 1: FilterType.FOUR_POLE}
LEVEL_CODES = {0: Level.ZERO, 1: Level.HALF, 2: Level.FULL}
LFO_EG_MOD_CODES = {0: LfoEgMod.OFF, 1: LfoEgMod.RATE, 2: LfoEgMod.INT}
LFO_TARGET_CODES = {0: LfoTarget.CUTOFF, 1: LfoTarget.SHAPE, 2: LfoTarget.PITCH}

POSITIVE_KNOBS = (
    "vco1_shape",
    "vco2_shape",
    "cross_mod_depth",
    "vco1_level",
    "vco2_level",
    "noise_level",
    "cutoff",
    "resonance",
    "amp_eg_attack",
    "amp_eg_decay",
    "amp_eg_sustain",
    "amp_eg_release",
    "eg_attack",
    "eg_decay",
    "eg_sustain",
    "eg_release",
    "lfo_rate",
    "lfo_int",
)
BALANCED_KNOBS = ("vco1_pitch", "vco2_pitch", "vco2_pitch_eg_int", "cutoff_eg_int")
OCTAVES = ("vco1_octave", "vco2_octave", "octave")


def positive_knob(raw: int) -> float:
    """0..255 -> 0.0..1.0"""
    return raw / 255.0


def balanced_knob(raw: int) -> float:
    """0..255 -> -1.0..1.0 with 128 as centre.

    Below centre there are 128 steps, above it only 127, so the step size
    differs on each side; 0, 128 and 255 land exactly on -1.0, 0.0 and 1.0.
    """
    delta = raw - 128
    if delta < 0:
        return delta / 128.0
    return delta / 127.0


def octave(raw: int) -> int:
    return raw + 1


def tempo_bpm(raw: int) -> float:
    return raw / 10.0


@dataclass(frozen=True)
class SemanticProgram:
    version: str
    program_name: str

    octave: int | None = None
    tempo: float | None = None

    vco1_wave: Wave | None = None
    vco1_octave: int | None = None
    vco1_pitch: float | None = None
    vco1_shape: float | None = None

    vco2_wave: Wave | None = None
    vco2_octave: int | None = None
    vco2_pitch: float | None = None
    vco2_shape: float | None = None
    cross_mod_depth: float | None = None
    vco2_pitch_eg_int: float | None = None
    sync: Switch | None = None
    ring: Switch | None = None

    vco1_level: float | None = None
    vco2_level: float | None = None
    noise_level: float | None = None

    cutoff: float | None = None
    resonance: float | None = None
    cutoff_eg_int: float | None = None
    cutoff_type: FilterType | None = None
    cutoff_keytrack: Level | None = None
    cutoff_velocity: Level | None = None

    amp_eg_attack: float | None = None
    amp_eg_decay: float | None = None
    amp_eg_sustain: float | None = None
    amp_eg_release: float | None = None

    eg_attack: float | None = None
    eg_decay: float | None = None
    eg_sustain: float | None = None
    eg_release: float | None = None

    lfo_wave: Wave | None = None
    lfo_eg_mod: LfoEgMod | None = None
    lfo_rate: float | None = None
    lfo_int: float | None = None
    lfo_target: LfoTarget | None = None

    unrecognized: Tuple[UnrecognizedCode, ...] = field(default=(), compare=False)

    def as_dict(self) -> Dict[str, Any]:
        """Plain JSON-friendly values; fields the layout lacks are omitted."""
        out: Dict[str, Any] = {}
        for name in self.__dataclass_fields__:
            if name == "unrecognized":
                continue
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, Enum):
                value = None if value.value is None else value.name.lower()
            out[name] = value
        if self.unrecognized:
            out["unrecognized"] = [
                {"field": u.field, "code": u.code} for u in self.unrecognized
            ]
        return out


def _lookup(
    raw: RawProgram,
    name: str,
    table: Mapping[int, E],
    unknown: E,
    unrecognized: List[UnrecognizedCode],
) -> E:
    code = int(raw[name])
    try:
        return table[code]
    except KeyError:
        logger.warning("%s: unrecognized %s code %d", raw.version, name, code)
        unrecognized.append(UnrecognizedCode(field=name, code=code))
        return unknown


def check_header(raw: RawProgram) -> None:
    header = raw.get("header")
    if header != MAGIC:
        raise InvalidFormat(header=str(header), expected=MAGIC)


def normalize(raw: RawProgram) -> SemanticProgram:
    """Map a `RawProgram` to musical values; raises `InvalidFormat` on a bad header."""
    check_header(raw)

    try:
        wave_codes = WAVE_CODES[raw.version]
    except KeyError:
        raise ProgramError(f"no wave code table for layout {raw.version!r}") from None

    unrecognized: List[UnrecognizedCode] = []
    values: Dict[str, Any] = {
        "version": raw.version,
        "program_name": str(raw["program_name"]).rstrip(" \x00"),
    }

    for name in POSITIVE_KNOBS:
        if name in raw:
            values[name] = positive_knob(int(raw[name]))
    for name in BALANCED_KNOBS:
        if name in raw:
            values[name] = balanced_knob(int(raw[name]))
    for name in OCTAVES:
        if name in raw:
            values[name] = octave(int(raw[name]))
    if "tempo" in raw:
        values["tempo"] = tempo_bpm(int(raw["tempo"]))

    switches: Tuple[Tuple[str, Mapping[int, Enum], Type[Enum]], ...] = (
        ("vco1_wave", wave_codes, Wave),
        ("vco2_wave", wave_codes, Wave),
        ("lfo_wave", wave_codes, Wave),
        ("sync", SWITCH_CODES, Switch),
        ("ring", SWITCH_CODES, Switch),
        ("cutoff_type", FILTER_TYPE_CODES, FilterType),
        ("cutoff_keytrack", LEVEL_CODES, Level),
        ("cutoff_velocity", LEVEL_CODES, Level),
        ("lfo_eg_mod", LFO_EG_MOD_CODES, LfoEgMod),
        ("lfo_target", LFO_TARGET_CODES, LfoTarget),
    )
    for name, table, enum_cls in switches:
        if name in raw:
            values[name] = _lookup(raw, name, table, enum_cls["UNKNOWN"], unrecognized)

    return SemanticProgram(unrecognized=tuple(unrecognized), **values)
