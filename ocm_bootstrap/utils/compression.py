import bz2
import gzip
import io
import lzma
from typing import BinaryIO

import zstandard

_GZIP_MAGIC = b"\x1f\x8b"
_BZIP2_MAGIC = b"BZh"
_XZ_MAGIC = b"\xfd7zXZ\x00"
_ZSTD_MAGIC = b"\x28\xb5\x2f\xfd"


def auto_decompress(stream: BinaryIO) -> tuple[BinaryIO, bool]:
    """Wrap stream in a decompressor matching its magic bytes.

    Returns the stream to read from and whether it is decompressing.
    """
    buffered = stream if isinstance(stream, io.BufferedReader) else io.BufferedReader(_Readable(stream))
    head = buffered.peek(len(_XZ_MAGIC))[: len(_XZ_MAGIC)]
    if head.startswith(_GZIP_MAGIC):
        return gzip.GzipFile(fileobj=buffered, mode="rb"), True
    if head.startswith(_BZIP2_MAGIC):
        return bz2.BZ2File(buffered, mode="rb"), True
    if head.startswith(_XZ_MAGIC):
        return lzma.LZMAFile(buffered, mode="rb"), True
    if head.startswith(_ZSTD_MAGIC):
        return zstandard.ZstdDecompressor().stream_reader(buffered, closefd=True), True
    return buffered, False


class _Readable(io.RawIOBase):
    """Raw adapter so any object with read() can be buffered and peeked."""

    def __init__(self, stream: BinaryIO):
        self._stream = stream

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        data = self._stream.read(len(buffer))
        if not data:
            return 0
        n = len(data)
        buffer[:n] = data
        return n

    def close(self) -> None:
        try:
            self._stream.close()
        finally:
            super().close()
