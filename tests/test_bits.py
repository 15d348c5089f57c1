"""Tests for bit-field extraction."""

import pytest

from modes_decode.bits import (
    CA_FIELD,
    DF_FIELD,
    ICAO_FIELD,
    MESSAGE_BITS,
    TC_FIELD,
    extract_bits,
    to_bit_string,
)
from modes_decode.errors import DecodeError, OutOfRangeError

KLM = bytes.fromhex("8D4840D6202CC371C32CE0576098")


class TestExtractBits:
    def test_header_fields(self):
        assert extract_bits(KLM, *DF_FIELD) == 17
        assert extract_bits(KLM, *CA_FIELD) == 5
        assert extract_bits(KLM, *ICAO_FIELD) == 0x4840D6
        assert extract_bits(KLM, *TC_FIELD) == 4

    def test_msb_first(self):
        assert extract_bits(KLM, 0, 1) == 1  # 0x8D = 1000 1101
        assert extract_bits(KLM, 1, 3) == 0
        assert extract_bits(KLM, 4, 4) == 0xD

    def test_whole_message(self):
        assert extract_bits(KLM, 0, MESSAGE_BITS) == int.from_bytes(KLM, "big")

    def test_last_bits(self):
        assert extract_bits(KLM, 104, 8) == 0x98

    def test_zero_width(self):
        assert extract_bits(KLM, 50, 0) == 0

    def test_past_end_raises(self):
        with pytest.raises(OutOfRangeError):
            extract_bits(KLM, 110, 5)

    def test_negative_offset_raises(self):
        with pytest.raises(OutOfRangeError):
            extract_bits(KLM, -1, 4)

    def test_negative_width_raises(self):
        with pytest.raises(OutOfRangeError):
            extract_bits(KLM, 4, -1)

    def test_short_buffer_raises(self):
        with pytest.raises(OutOfRangeError):
            extract_bits(KLM[:7], 32, 37)

    def test_out_of_range_is_decode_error(self):
        assert issubclass(OutOfRangeError, DecodeError)


class TestBitString:
    def test_length(self):
        assert len(to_bit_string(KLM)) == 112

    def test_prefix(self):
        assert to_bit_string(KLM).startswith("10001101")
