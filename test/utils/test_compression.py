import bz2
import gzip
import io
import lzma
import pytest
import zstandard
from ocm_bootstrap.utils.compression import auto_decompress

CONTENT = b"apiVersion: v1\nkind: Namespace\n"


def zstd_compress(data):
    return zstandard.ZstdCompressor().compress(data)


@pytest.mark.parametrize("compress", [gzip.compress, bz2.compress, lzma.compress, zstd_compress])
def test_auto_decompress(compress):
    reader, decompressed = auto_decompress(io.BytesIO(compress(CONTENT)))
    assert decompressed is True
    assert reader.read() == CONTENT


def test_plain_content_passes_through():
    reader, decompressed = auto_decompress(io.BytesIO(CONTENT))
    assert decompressed is False
    assert reader.read() == CONTENT


def test_empty_stream():
    reader, decompressed = auto_decompress(io.BytesIO(b""))
    assert decompressed is False
    assert reader.read() == b""


def test_zstd_stream_without_content_size():
    compressed = io.BytesIO()
    with zstandard.ZstdCompressor().stream_writer(compressed, closefd=False) as writer:
        writer.write(CONTENT)
    reader, decompressed = auto_decompress(io.BytesIO(compressed.getvalue()))
    assert decompressed is True
    with reader:
        assert reader.read() == CONTENT
