"""Tests for the segment codec: palette, layout and byte mapping."""

import numpy as np
import pytest

from borderid.visual.codec import (
    CALIBRATION_START,
    DATA_START,
    INDEX_COLORS,
    MARKER_END_PATTERN,
    MARKER_START_PATTERN,
    RGB,
    TOTAL_SEGMENTS,
    ChannelPalette,
    CodecConfig,
    EncodingError,
    GrayPalette,
    Palette,
    PaletteMode,
    bytes_to_uuid,
    calculate_total_segments,
    deinterleave_bytes,
    encode_codeword,
    encode_identifier,
    generate_uuid,
    hex_digit_to_colors,
    hex_digit_to_indices,
    identifier_to_indices,
    indices_to_hex_digit,
    interleave_bytes,
    make_palette,
    uuid_to_bytes,
    uuid_to_color_sequence,
)
from borderid.visual.ecc import rs_encode

SAMPLE_UUID = "12345678-1234-4234-8234-123456789abc"


class TestPalette:
    def test_base_palette_is_abstract(self):
        with pytest.raises(TypeError):
            Palette()

    def test_default_colors(self):
        assert INDEX_COLORS[0] == RGB(121, 121, 121)
        assert INDEX_COLORS[1] == RGB(145, 121, 121)
        assert INDEX_COLORS[2] == RGB(121, 145, 121)
        assert INDEX_COLORS[4] == RGB(121, 121, 145)
        assert INDEX_COLORS[7] == RGB(145, 145, 145)

    def test_min_distance(self):
        palette = ChannelPalette()
        for i, a in enumerate(palette.colors):
            for b in palette.colors[i + 1:]:
                dist = np.linalg.norm(np.subtract(a, b))
                assert dist >= 2 * palette.offset

    def test_custom_offset(self):
        palette = ChannelPalette(base=128, offset=20)
        assert palette.colors[0] == RGB(108, 108, 108)
        assert palette.colors[7] == RGB(148, 148, 148)

    def test_nominal_index(self):
        palette = ChannelPalette()
        for i, color in enumerate(palette.colors):
            assert palette.nominal_index(color, 20) == i
        assert palette.nominal_index((140, 125, 118), 20) == 1
        assert palette.nominal_index((200, 121, 121), 20) is None
        assert palette.nominal_index((255, 255, 255), 20) is None

    def test_encoded_mask_matches_nominal(self):
        palette = ChannelPalette()
        pixels = np.array([[121, 121, 121], [145, 121, 145], [255, 255, 255],
                           [10, 121, 121], [139, 126, 150]], dtype=np.uint8)
        mask = palette.encoded_mask(pixels, 20)
        expected = [palette.nominal_index(tuple(int(v) for v in p), 20) is not None
                    for p in pixels]
        assert mask.tolist() == expected

    def test_gray8_levels(self):
        palette = make_palette(CodecConfig(palette_mode=PaletteMode.GRAY8))
        assert isinstance(palette, GrayPalette)
        assert len(palette) == 8
        assert palette.colors[0] == RGB(80, 80, 80)
        assert palette.colors[7] == RGB(178, 178, 178)
        assert palette.nominal_index((95, 93, 94), 20) == 1
        assert palette.nominal_index((150, 80, 80), 20) is None

    def test_gray4_levels(self):
        palette = make_palette(CodecConfig(palette_mode="gray4"))
        assert palette.levels == (60, 107, 153, 200)
        assert palette.calibration_indices == (0, 1, 2, 3, 0, 1, 2, 3)


class TestDigitMapping:
    def test_hex_digit_indices(self):
        assert hex_digit_to_indices(0x0) == (0, 0)
        assert hex_digit_to_indices(0x7) == (0, 7)
        assert hex_digit_to_indices(0x8) == (1, 0)
        assert hex_digit_to_indices(0xF) == (1, 7)

    def test_hex_digit_roundtrip(self):
        for digit in range(16):
            assert indices_to_hex_digit(*hex_digit_to_indices(digit)) == digit

    def test_hex_digit_colors(self):
        assert hex_digit_to_colors(0xA) == (INDEX_COLORS[1], INDEX_COLORS[2])

    def test_byte_to_indices(self):
        palette = ChannelPalette()
        assert palette.byte_to_indices(0x12) == [0, 1, 0, 2]
        assert palette.byte_to_indices(0xAB) == [1, 2, 1, 3]
        for byte in range(256):
            assert palette.indices_to_byte(palette.byte_to_indices(byte)) == byte

    def test_gray4_byte_to_indices(self):
        palette = make_palette(CodecConfig(palette_mode=PaletteMode.GRAY4))
        assert palette.byte_to_indices(0xB4) == [2, 3, 1, 0]
        for byte in range(256):
            assert palette.indices_to_byte(palette.byte_to_indices(byte)) == byte


class TestLayout:
    def test_default_segment_count(self):
        assert TOTAL_SEGMENTS == 148
        assert calculate_total_segments() == 148

    @pytest.mark.parametrize("factor,segments", [
        (1.25, 100), (1.5, 116), (2.0, 148), (3.0, 212),
    ])
    def test_segment_count_by_redundancy(self, factor, segments):
        cfg = CodecConfig(redundancy_factor=factor)
        assert cfg.total_segments == segments
        assert len(encode_identifier(bytes(16), cfg)) == segments

    @pytest.mark.parametrize("factor,parity", [(1.5, 8), (3.0, 32)])
    def test_codeword_follows_ecc_config(self, factor, parity):
        cfg = CodecConfig(redundancy_factor=factor)
        assert cfg.ecc_config.parity_bytes(16) == parity
        ident = uuid_to_bytes(SAMPLE_UUID)
        assert encode_codeword(ident, cfg) == rs_encode(ident, parity)

    def test_concrete_sequence(self):
        colors = uuid_to_color_sequence(SAMPLE_UUID)
        assert len(colors) == 148
        assert colors[:6] == [INDEX_COLORS[i] for i in MARKER_START_PATTERN]
        assert colors[6:14] == list(INDEX_COLORS)
        assert colors[-6:] == [INDEX_COLORS[i] for i in MARKER_END_PATTERN]

    def test_data_segments_carry_codeword(self):
        ident = uuid_to_bytes(SAMPLE_UUID)
        indices = identifier_to_indices(ident)
        palette = ChannelPalette()
        data = indices[DATA_START:DATA_START + 4 * 32]
        decoded = bytes(palette.indices_to_byte(data[i:i + 4])
                        for i in range(0, len(data), 4))
        assert decoded == rs_encode(ident, 16)
        assert decoded[:16] == ident

    def test_gray_modes_keep_layout(self):
        for mode in (PaletteMode.GRAY8, PaletteMode.GRAY4):
            cfg = CodecConfig(palette_mode=mode)
            indices = identifier_to_indices(uuid_to_bytes(SAMPLE_UUID), cfg)
            assert len(indices) == 148
            assert indices[:6] == list(MARKER_START_PATTERN)
            assert indices[CALIBRATION_START:DATA_START] == \
                list(cfg.palette.calibration_indices)

    def test_wrong_identifier_length(self):
        with pytest.raises(EncodingError):
            encode_identifier(bytes(15))
        with pytest.raises(ValueError):
            encode_identifier(bytes(17))


class TestInterleave:
    def test_order(self):
        assert interleave_bytes(bytes(range(8)), 4) == bytes([0, 4, 1, 5, 2, 6, 3, 7])

    @pytest.mark.parametrize("length", [8, 10, 32, 33])
    @pytest.mark.parametrize("stride", [2, 3, 4])
    def test_inverse(self, length, stride):
        data = bytes(range(length))
        assert deinterleave_bytes(interleave_bytes(data, stride), stride) == data

    def test_disabled(self):
        assert interleave_bytes(b"abc", 0) == b"abc"
        assert deinterleave_bytes(b"abc", 1) == b"abc"

    def test_codeword_interleaved(self):
        ident = bytes(range(16))
        cfg = CodecConfig(interleave_stride=4)
        assert encode_codeword(ident, cfg) == interleave_bytes(rs_encode(ident, 16), 4)


class TestUUIDHelpers:
    def test_roundtrip(self):
        assert bytes_to_uuid(uuid_to_bytes(SAMPLE_UUID)) == SAMPLE_UUID

    def test_accepts_uppercase_without_dashes(self):
        assert uuid_to_bytes(SAMPLE_UUID.replace("-", "").upper()) == \
            uuid_to_bytes(SAMPLE_UUID)

    def test_invalid(self):
        with pytest.raises(EncodingError):
            uuid_to_bytes("not-a-uuid")
        with pytest.raises(EncodingError):
            bytes_to_uuid(b"short")

    def test_generate_v4(self):
        value = generate_uuid()
        assert len(uuid_to_bytes(value)) == 16
        assert value[14] == "4"
        assert generate_uuid() != value
