"""
Block decompressors used by world files.

Implements:
  - LZSS (12-bit window, additive checksum) used up to OPRW v22
  - LZO1X used from OPRW v23

Both work on an in-memory window of the source stream, bounded by the
largest size a valid block can compress to, and report how many input
bytes they consumed so decompress_or_raw can leave the stream positioned
right after the compressed block.
"""
from enum import Enum
from typing import Tuple

from .base.binary_reader import BinaryReader, TruncatedStreamError, WorldParseError

# Blocks smaller than this are always stored uncompressed
RAW_THRESHOLD = 1024

LZSS_CHECKSUM_SIZE = 4

LZO_M2_MAX_OFFSET = 0x0800


class CompressionError(WorldParseError):
    """Compressed block is corrupt"""
    pass


class Codec(Enum):
    LZSS = 'lzss'
    LZO = 'lzo'


# =============================================================================
# LZSS
# =============================================================================

def lzss_decompress(data: bytes, expected_size: int) -> Tuple[bytes, int]:
    """
    Decompress an LZSS block followed by its 4-byte checksum.

    Flag byte, then 8 items: bit set = literal byte, bit clear = 2-byte
    back-reference (12-bit distance, 4-bit length + 3). References that
    point before the start of output emit spaces.

    Args:
        data: Buffer starting at the compressed block
        expected_size: Exact decompressed size

    Returns:
        Tuple of (decompressed bytes, bytes consumed including checksum)

    Raises:
        TruncatedStreamError: If the buffer ends early
        CompressionError: On checksum mismatch or a zero-distance reference
    """
    out = bytearray()
    pos = 0
    checksum = 0
    flags = 0
    size = len(data)

    def read_u8():
        nonlocal pos
        if pos >= size:
            raise TruncatedStreamError(f"LZSS: unexpected end of stream at offset {pos}")
        val = data[pos]
        pos += 1
        return val

    remaining = expected_size
    while remaining > 0:
        flags >>= 1
        if (flags & 0x100) == 0:
            flags = read_u8() | 0xFF00

        if flags & 0x01:
            value = read_u8()
            checksum += value
            out.append(value)
            remaining -= 1
            continue

        b1 = read_u8()
        b2 = read_u8()
        rpos = b1 | ((b2 & 0xF0) << 4)
        rlen = (b2 & 0x0F) + 3
        if rpos == 0:
            raise CompressionError(f"LZSS: zero-distance back-reference at offset {pos - 2}")

        # Space fill when the reference reaches before the output start
        while rpos > len(out) and rlen > 0:
            checksum += 0x20
            out.append(0x20)
            remaining -= 1
            if remaining == 0:
                break
            rlen -= 1
        if remaining == 0:
            break

        src = len(out) - rpos
        while rlen > 0:
            value = out[src]
            src += 1
            checksum += value
            out.append(value)
            remaining -= 1
            if remaining == 0:
                break
            rlen -= 1

    if pos + 4 > size:
        raise TruncatedStreamError("LZSS: missing trailing checksum")
    stored = int.from_bytes(data[pos:pos + 4], 'little')
    checksum &= 0xFFFFFFFF
    if stored != checksum:
        raise CompressionError(f"LZSS: checksum mismatch: expected {stored:#010x}, got {checksum:#010x}")

    return bytes(out), pos + 4


# =============================================================================
# LZO1X
# =============================================================================

class _LzoDecoder:
    """LZO1X decoder state over an in-memory buffer"""

    def __init__(self, data: bytes, expected_size: int):
        self.data = data
        self.ip = 0
        self.out = bytearray()
        self.size = expected_size

    def read(self) -> int:
        if self.ip >= len(self.data):
            raise TruncatedStreamError(f"LZO: unexpected end of stream at offset {self.ip}")
        value = self.data[self.ip]
        self.ip += 1
        return value

    def peek(self, offset: int = 0) -> int:
        if self.ip + offset >= len(self.data):
            raise TruncatedStreamError(f"LZO: unexpected end of stream at offset {self.ip + offset}")
        return self.data[self.ip + offset]

    def copy_literals(self, count: int) -> None:
        if self.size - len(self.out) < count:
            raise CompressionError(
                f"LZO: output overrun copying {count} literals (remaining={self.size - len(self.out)})"
            )
        if self.ip + count > len(self.data):
            raise TruncatedStreamError(f"LZO: unexpected end of stream copying {count} literals")
        self.out += self.data[self.ip:self.ip + count]
        self.ip += count

    def copy_back(self, m_pos: int, length: int) -> None:
        op = len(self.out)
        if m_pos < 0 or m_pos >= op:
            raise CompressionError(f"LZO: lookbehind overrun (mPos={m_pos}, op={op})")
        if self.size - op < length:
            raise CompressionError(
                f"LZO: output overrun in copyBack (need={length}, remaining={self.size - op})"
            )
        if m_pos + length <= op:
            self.out += self.out[m_pos:m_pos + length]
        else:
            for i in range(length):
                self.out.append(self.out[m_pos + i])

    def read_run_length(self, step: int) -> int:
        t = 0
        while self.peek() == 0:
            self.ip += 1
            t += step
        return t + self.read()

    def read_offset_pair(self) -> int:
        b0 = self.read()
        b1 = self.read()
        return (b0 >> 2) + (b1 << 6)

    def match_done(self) -> int:
        """Copy trailing literals after a match and return the next tag"""
        while True:
            t = self.data[self.ip - 2] & 3
            if t:
                self.copy_literals(t)
                return self.read()

            t = self.read()
            if t >= 16:
                return t
            if t == 0:
                t = 15 + self.read_run_length(255)
            self.copy_literals(t + 3)

            tag = self.read()
            if tag >= 16:
                return tag
            self.m1_after_literals(tag)

    def m1_after_literals(self, tag: int) -> None:
        m_pos = len(self.out) - (1 + LZO_M2_MAX_OFFSET)
        m_pos -= tag >> 2
        m_pos -= self.read() << 2
        self.copy_back(m_pos, 3)

    def match_loop(self, t: int) -> bytes:
        while True:
            op = len(self.out)
            if t >= 64:
                m_pos = op - 1 - ((t >> 2) & 7) - (self.read() << 3)
                self.copy_back(m_pos, (t >> 5) + 1)
            elif t >= 32:
                t &= 31
                if t == 0:
                    t = 31 + self.read_run_length(255)
                m_pos = op - 1 - self.read_offset_pair()
                self.copy_back(m_pos, t + 2)
            elif t >= 16:
                m_pos = op - ((t & 8) << 11)
                t &= 7
                if t == 0:
                    t = 7 + self.read_run_length(255)
                m_pos -= self.read_offset_pair()
                if m_pos == op:
                    if op != self.size:
                        raise CompressionError(f"LZO: output underrun (op={op}, expected={self.size})")
                    return bytes(self.out)
                self.copy_back(m_pos - 0x4000, t + 2)
            else:
                m_pos = op - 1 - (t >> 2) - (self.read() << 2)
                self.copy_back(m_pos, 2)
            t = self.match_done()

    def run(self) -> bytes:
        if self.peek() > 17:
            t = self.read() - 17
            self.copy_literals(t)
            tag = self.read()
            if t < 4 or tag >= 16:
                return self.match_loop(tag)
        else:
            t = self.read()
            if t >= 16:
                return self.match_loop(t)
            if t == 0:
                t = 15 + self.read_run_length(255)
            self.copy_literals(t + 3)
            tag = self.read()
            if tag >= 16:
                return self.match_loop(tag)

        self.m1_after_literals(tag)
        return self.match_loop(self.match_done())


def lzo_decompress(data: bytes, expected_size: int) -> Tuple[bytes, int]:
    """
    Decompress an LZO1X block terminated by its end-of-stream marker

    Args:
        data: Buffer starting at the compressed block
        expected_size: Exact decompressed size

    Returns:
        Tuple of (decompressed bytes, bytes consumed)
    """
    decoder = _LzoDecoder(data, expected_size)
    out = decoder.run()
    return out, decoder.ip


def max_compressed_size(codec: Codec, expected_size: int) -> int:
    """Largest input a valid block of expected_size bytes can occupy"""
    if codec is Codec.LZO:
        return expected_size + expected_size // 16 + 64 + 3
    # 9 bits per literal, one trailing partial reference, then the checksum
    return expected_size + expected_size // 8 + 3 + LZSS_CHECKSUM_SIZE


_DECOMPRESSORS = {
    Codec.LZSS: lzss_decompress,
    Codec.LZO: lzo_decompress,
}


def decompress_or_raw(reader: BinaryReader, expected_size: int, codec: Codec = Codec.LZSS) -> bytes:
    """
    Read a block that is compressed unless it is smaller than RAW_THRESHOLD

    Leaves the reader positioned right after the consumed bytes.

    Args:
        reader: Source reader
        expected_size: Exact decompressed size
        codec: Compression algorithm of the block

    Returns:
        expected_size bytes
    """
    if expected_size < RAW_THRESHOLD:
        return reader.read_bytes(expected_size)

    start = reader.tell()
    window = reader.read_at_most(max_compressed_size(codec, expected_size))
    out, consumed = _DECOMPRESSORS[codec](window, expected_size)
    reader.seek(start + consumed)
    return out
