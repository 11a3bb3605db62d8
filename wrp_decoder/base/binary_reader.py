"""
Primitive reads for WRP world files.
Wraps a seekable binary stream and raises on every short read.
"""
import io
import struct
from typing import BinaryIO, List, Tuple, Union

import numpy as np
from construct import StreamError


class WorldParseError(Exception):
    """Base exception for world decoding errors"""
    pass


class TruncatedStreamError(WorldParseError, EOFError):
    """Stream ended before a read could be satisfied"""
    pass


class BinaryReader:
    """Little-endian reader over a seekable binary stream"""

    def __init__(self, stream: Union[BinaryIO, bytes, bytearray]):
        """
        Initialize the reader

        Args:
            stream: Open binary stream, or raw bytes to wrap in one
        """
        if isinstance(stream, (bytes, bytearray, memoryview)):
            stream = io.BytesIO(bytes(stream))
        self._stream = stream

    @property
    def stream(self) -> BinaryIO:
        return self._stream

    def tell(self) -> int:
        return self._stream.tell()

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> None:
        self._stream.seek(offset, whence)

    def read_bytes(self, size: int) -> bytes:
        """
        Read exactly size bytes

        Raises:
            TruncatedStreamError: If not enough bytes available
        """
        if size <= 0:
            return b''
        data = self._stream.read(size)
        if len(data) < size:
            raise TruncatedStreamError(
                f"Expected {size} bytes at offset {self.tell() - len(data)}, got {len(data)}"
            )
        return data

    def read_at_most(self, size: int) -> bytes:
        """Read up to size bytes, fewer at the end of the stream"""
        return self._stream.read(size)

    def read_struct(self, fmt: str) -> Tuple:
        """Read and unpack a struct format string"""
        return struct.unpack(fmt, self.read_bytes(struct.calcsize(fmt)))

    def read_u8(self) -> int:
        return self.read_bytes(1)[0]

    def read_u16(self) -> int:
        return self.read_struct('<H')[0]

    def read_u32(self) -> int:
        return self.read_struct('<I')[0]

    def read_i32(self) -> int:
        return self.read_struct('<i')[0]

    def read_f32(self) -> float:
        return self.read_struct('<f')[0]

    def read_signature(self) -> str:
        """Read a 4-character file signature"""
        return self.read_bytes(4).decode('latin-1')

    def read_asciiz(self) -> str:
        """Read a null-terminated string"""
        chars = bytearray()
        while True:
            char = self._stream.read(1)
            if not char:
                raise TruncatedStreamError("Unexpected end of stream reading null-terminated string")
            if char == b'\0':
                break
            chars += char
        return chars.decode('utf-8', 'replace')

    def read_fixed_string(self, size: int) -> str:
        """Read a fixed-size string, trimming at the first null"""
        return self.read_bytes(size).split(b'\0', 1)[0].decode('utf-8', 'replace')

    def read_f32_slice(self, count: int) -> np.ndarray:
        return np.frombuffer(self.read_bytes(count * 4), dtype='<f4').copy()

    def read_u16_slice(self, count: int) -> np.ndarray:
        return np.frombuffer(self.read_bytes(count * 2), dtype='<u2').copy()

    def read_u32_slice(self, count: int) -> np.ndarray:
        return np.frombuffer(self.read_bytes(count * 4), dtype='<u4').copy()

    def read_transform_matrix(self) -> List[float]:
        """Read a 4x3 transform matrix (12 floats, translation last)"""
        return list(self.read_struct('<12f'))

    def parse_record(self, record_struct):
        """
        Parse one construct record from the current position

        Raises:
            TruncatedStreamError: If the record is cut short
        """
        try:
            return record_struct.parse_stream(self._stream)
        except StreamError as e:
            raise TruncatedStreamError(f"Truncated record at offset {self.tell()}: {e}") from e
