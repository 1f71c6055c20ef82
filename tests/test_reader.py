from pathlib import Path
import sys

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from prog.errors import TruncatedInput  # noqa: E402
from prog.layout import FULL, MINIMAL  # noqa: E402
from prog.reader import BitCursor, read_program  # noqa: E402

from prog_samples import full_program, minimal_program  # noqa: E402


def _hand_built_full() -> bytes:
    data = bytearray(102)
    data[0:4] = b"PROG"
    data[4:20] = b"Hand Built      "
    data[20] = 0x40  # vco1_pitch
    data[31] = 0xC8  # cutoff_eg_int
    data[43] = 0x7F  # lfo_int
    data[52] = 0b10_01_00_10
    data[53] = 0b0_1_0_1_01_10
    data[54] = 0b00_10_01_00
    data[55] = 0b00000_111
    data[100:102] = b"\xB0\x04"
    return bytes(data)


class TestBitCursor:
    def test_reads_msb_first(self):
        cursor = BitCursor(bytes([0b1011_0010]))
        assert cursor.read_bits(2) == 0b10
        assert cursor.read_bits(1) == 1
        assert cursor.read_bits(5) == 0b10010
        assert cursor.remaining_bits == 0

    def test_skip_then_bytes(self):
        cursor = BitCursor(b"\x00\x00AB")
        cursor.skip(16)
        assert cursor.read_bytes(2) == b"AB"

    def test_rejects_read_across_byte(self):
        cursor = BitCursor(b"\xff\xff")
        cursor.skip(6)
        with pytest.raises(ValueError):
            cursor.read_bits(4)

    def test_rejects_unaligned_byte_read(self):
        cursor = BitCursor(b"\xff\xff")
        cursor.skip(1)
        with pytest.raises(ValueError, match="unaligned"):
            cursor.read_bytes(1)

    def test_out_of_data(self):
        cursor = BitCursor(b"\x01")
        cursor.skip(8)
        with pytest.raises(EOFError):
            cursor.read_bits(1)


def test_read_full_hand_built() -> None:
    raw = read_program(_hand_built_full(), FULL)
    assert raw.version == "full"
    assert raw["header"] == "PROG"
    assert raw["program_name"] == "Hand Built      "
    assert raw["vco1_pitch"] == 0x40
    assert raw["cutoff_eg_int"] == 0xC8
    assert raw["lfo_int"] == 0x7F
    assert (raw["vco1_wave"], raw["vco1_octave"], raw["vco2_wave"], raw["vco2_octave"]) == (
        2,
        1,
        0,
        2,
    )
    assert (raw["sync"], raw["ring"], raw["cutoff_type"]) == (0, 1, 1)
    assert (raw["cutoff_keytrack"], raw["cutoff_velocity"]) == (1, 2)
    assert (raw["lfo_eg_mod"], raw["lfo_target"], raw["lfo_wave"]) == (0, 2, 1)
    assert raw["octave"] == 7
    assert raw["tempo"] == 1200


def test_sample_builder_matches_hand_built_bytes() -> None:
    data = full_program(
        program_name="Hand Built",
        vco1_pitch=0x40,
        cutoff_eg_int=0xC8,
        lfo_int=0x7F,
        vco2_pitch=0,
        vco2_shape=0,
        vco1_level=0,
        vco2_level=0,
        cutoff=0,
        vco2_pitch_eg_int=0,
        amp_eg_decay=0,
        amp_eg_sustain=0,
        eg_decay=0,
        lfo_rate=0,
        lfo_target=2,
        octave=7,
    )
    assert data == _hand_built_full()


def test_skip_regions_produce_no_values() -> None:
    raw = read_program(full_program(), FULL)
    assert list(raw.values) == FULL.field_names()
    assert len(raw.values) == 38


def test_minimal_layout() -> None:
    raw = read_program(minimal_program(vco1_wave=2, vco1_octave=1), MINIMAL)
    assert dict(raw.items()) == {
        "header": "PROG",
        "program_name": "Lead            ",
        "vco1_wave": 2,
        "vco1_octave": 1,
    }


def test_minimal_ignores_padding_bits() -> None:
    data = bytearray(minimal_program(vco1_wave=1, vco1_octave=2))
    data[22] |= 0b00_11_00_11
    data[20:22] = b"\xff\xff"
    raw = read_program(bytes(data), MINIMAL)
    assert raw["vco1_wave"] == 1
    assert raw["vco1_octave"] == 2


def test_tempo_is_little_endian() -> None:
    raw = read_program(full_program(tempo=0x1234), FULL)
    assert raw["tempo"] == 0x1234
    data = full_program(tempo=0x1234)
    assert data[100:102] == b"\x34\x12"


def test_trailing_bytes_are_ignored() -> None:
    data = full_program()
    padded = read_program(data + b"\xAA" * 16, FULL)
    assert dict(padded.items()) == dict(read_program(data, FULL).items())


def test_garbage_header_is_still_read() -> None:
    raw = read_program(full_program(header="XXXX"), FULL)
    assert raw["header"] == "XXXX"


def test_non_ascii_bytes_are_replaced() -> None:
    data = bytearray(full_program())
    data[0] = 0xFF
    raw = read_program(bytes(data), FULL)
    assert raw["header"] == "\ufffdROG"


def test_values_are_read_only() -> None:
    raw = read_program(full_program(), FULL)
    with pytest.raises(TypeError):
        raw.values["cutoff"] = 0  # type: ignore[index]


def test_truncated_at_fifty_bytes_never_reaches_tempo() -> None:
    data = full_program()[:50]
    with pytest.raises(TruncatedInput) as excinfo:
        read_program(data, FULL)
    err = excinfo.value
    assert err.needed == 102
    assert err.available == 50
    assert err.last_field == "lfo_int"
    assert err.field == "vco1_wave"
    assert err.missing[-1] == "tempo"
    assert "lfo_int" in str(err)


def test_truncated_by_one_byte_misses_only_tempo() -> None:
    with pytest.raises(TruncatedInput) as excinfo:
        read_program(full_program()[:101], FULL)
    assert excinfo.value.missing == ("tempo",)
    assert excinfo.value.last_field == "octave"


def test_empty_buffer() -> None:
    with pytest.raises(TruncatedInput) as excinfo:
        read_program(b"", MINIMAL)
    assert excinfo.value.last_field is None
    assert excinfo.value.field == "header"
    assert excinfo.value.missing == ("header", "program_name", "vco1_wave", "vco1_octave")


def test_truncated_input_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        read_program(b"PROG", MINIMAL)
