"""Read-only decoder for `.prog_bin` synthesizer programs."""

from .errors import (  # noqa: F401
    InvalidFormat,
    ProgramError,
    TruncatedInput,
    UnrecognizedCode,
)
from .layout import (  # noqa: F401
    FULL,
    LAYOUTS,
    MAGIC,
    MINIMAL,
    Field,
    Layout,
    Placement,
    describe_layout,
    detect_layout,
    get_layout,
)
from .reader import BitCursor, RawProgram, read_program  # noqa: F401
from .normalize import (  # noqa: F401
    WAVE_CODES,
    FilterType,
    Level,
    LfoEgMod,
    LfoTarget,
    SemanticProgram,
    Switch,
    Wave,
    balanced_knob,
    normalize,
    positive_knob,
)
from .report import (  # noqa: F401
    ABSENT,
    format_cents,
    format_enum,
    format_field,
    format_percent,
    format_raw,
    render_report,
    report_sections,
)
from .decode import decode_program, decode_report  # noqa: F401
