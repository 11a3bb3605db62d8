"""
Tests for the LZSS and LZO decompressors
"""
import io
import struct

import pytest

from wrp_decoder.base.binary_reader import BinaryReader, TruncatedStreamError, WorldParseError
from wrp_decoder.compression import (
    Codec, CompressionError, decompress_or_raw, lzo_decompress, lzss_decompress, max_compressed_size,
)

from builders import lzo_literals, lzss_literals


class TestLzss:
    """LZSS decoding"""

    def test_literals(self):
        payload = b'hello world!'
        out, consumed = lzss_decompress(lzss_literals(payload), len(payload))
        assert out == payload
        assert consumed == len(lzss_literals(payload))

    def test_back_reference(self):
        data = bytes([0x07]) + b'ABC' + bytes([0x03, 0x03]) + struct.pack('<I', 3 * (65 + 66 + 67))
        out, consumed = lzss_decompress(data, 9)
        assert out == b'ABCABCABC'
        assert consumed == len(data)

    def test_reference_before_start_emits_spaces(self):
        data = bytes([0x00, 0x01, 0x00]) + struct.pack('<I', 3 * 0x20)
        out, _ = lzss_decompress(data, 3)
        assert out == b'   '

    def test_checksum_mismatch(self):
        data = bytearray(lzss_literals(b'abcdef'))
        data[-1] ^= 0xFF
        with pytest.raises(CompressionError):
            lzss_decompress(bytes(data), 6)

    def test_zero_distance_reference(self):
        with pytest.raises(CompressionError):
            lzss_decompress(bytes([0x00, 0x00, 0x00]) + bytes(8), 3)

    def test_zero_distance_after_literals(self):
        data = bytes([0x01]) + b'A' + bytes([0x00, 0x00]) + bytes(4)
        with pytest.raises(WorldParseError):
            lzss_decompress(data, 4)

    def test_truncated(self):
        with pytest.raises(TruncatedStreamError):
            lzss_decompress(lzss_literals(b'abcdef')[:4], 6)


class TestLzo:
    """LZO1X decoding"""

    def test_literal_run(self):
        out, consumed = lzo_decompress(bytes([0x15]) + b'ABCD' + bytes([0x11, 0, 0]), 4)
        assert out == b'ABCD'
        assert consumed == 8

    def test_long_literal_run(self):
        payload = bytes(range(256)) * 5
        out, consumed = lzo_decompress(lzo_literals(payload), len(payload))
        assert out == payload
        assert consumed == len(lzo_literals(payload))

    def test_short_match(self):
        data = bytes([0x15]) + b'ABCD' + bytes([0x6C, 0x00, 0x11, 0x00, 0x00])
        out, consumed = lzo_decompress(data, 8)
        assert out == b'ABCDABCD'
        assert consumed == len(data)

    def test_overlapping_match(self):
        data = bytes([0x12]) + b'A' + bytes([0xC0, 0x00, 0x11, 0x00, 0x00])
        out, _ = lzo_decompress(data, 8)
        assert out == b'A' * 8

    def test_underrun_at_end_marker(self):
        with pytest.raises(CompressionError):
            lzo_decompress(bytes([0x15]) + b'ABCD' + bytes([0x11, 0, 0]), 5)

    def test_lookbehind_overrun(self):
        # Match distance reaches before the first output byte
        data = bytes([0x15]) + b'ABCD' + bytes([0x6C, 0x01, 0x11, 0x00, 0x00])
        with pytest.raises(CompressionError):
            lzo_decompress(data, 8)


class TestDecompressOrRaw:
    """Raw/compressed selection and stream positioning"""

    def test_small_blocks_are_raw(self):
        reader = BinaryReader(b'rawdata' + b'next')
        assert decompress_or_raw(reader, 7) == b'rawdata'
        assert reader.read_bytes(4) == b'next'

    @pytest.mark.parametrize('codec, packer', [
        (Codec.LZSS, lzss_literals),
        (Codec.LZO, lzo_literals),
    ])
    def test_large_blocks_leave_stream_after_block(self, codec, packer):
        payload = bytes(i % 251 for i in range(2048))
        reader = BinaryReader(packer(payload) + b'TAIL')
        assert decompress_or_raw(reader, len(payload), codec) == payload
        assert reader.read_bytes(4) == b'TAIL'


class RecordingStream(io.BytesIO):
    """BytesIO that remembers every requested read size"""

    def __init__(self, data: bytes):
        super().__init__(data)
        self.requests = []

    def read(self, size=-1):
        self.requests.append(size)
        return super().read(size)


class TestBoundedWindow:
    """Compressed blocks never pull in the rest of the file"""

    @pytest.mark.parametrize('codec, packer', [
        (Codec.LZSS, lzss_literals),
        (Codec.LZO, lzo_literals),
    ])
    def test_window_is_bounded(self, codec, packer):
        payload = bytes(i % 251 for i in range(4096))
        packed = packer(payload)
        assert len(packed) <= max_compressed_size(codec, len(payload))

        stream = RecordingStream(packed + bytes(1 << 20))
        reader = BinaryReader(stream)
        assert decompress_or_raw(reader, len(payload), codec) == payload
        assert reader.tell() == len(packed)
        assert all(0 <= size <= max_compressed_size(codec, len(payload)) for size in stream.requests)

    def test_block_at_end_of_stream(self):
        payload = bytes(2048)
        reader = BinaryReader(lzss_literals(payload))
        assert decompress_or_raw(reader, len(payload), Codec.LZSS) == payload
        assert reader.read_at_most(1) == b''
