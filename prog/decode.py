"""Bytes in, report out: the reader, normalizer and formatter chained together."""

from __future__ import annotations

from .layout import Layout, detect_layout, get_layout
from .normalize import SemanticProgram, normalize
from .reader import read_program
from .report import render_report


def resolve_layout(data: bytes, version: str | Layout | None = None) -> Layout:
    if version is None:
        return detect_layout(data)
    if isinstance(version, Layout):
        return version
    return get_layout(version)


def decode_program(data: bytes, version: str | Layout | None = None) -> SemanticProgram:
    """Decode one `.prog_bin` buffer.

    `version` names a layout from `prog.layout.LAYOUTS`; when omitted the
    layout is picked from the buffer length.
    """
    return normalize(read_program(data, resolve_layout(data, version)))


def decode_report(data: bytes, version: str | Layout | None = None) -> str:
    return render_report(decode_program(data, version))
