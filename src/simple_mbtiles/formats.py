# %%
#|export
from enum import Enum
from typing import Optional
import struct

from .errors import UnrecognizedFormatError

GZIP_MAGIC = b'\x1f\x8b'
ZLIB_MAGIC = b'\x78\x9c'
PNG_MAGIC = b'\x89PNG\r\n\x1a\n'
JPG_MAGIC = b'\xff\xd8\xff'

class TileFormat(Enum):
    UNKNOWN = "unknown"
    PNG = "png"
    JPG = "jpg"
    WEBP = "webp"
    PBF = "pbf"

    @property
    def content_type(self) -> str:
        return _CONTENT_TYPES.get(self, "")

    def __str__(self) -> str:
        return self.value

_CONTENT_TYPES = {
    TileFormat.PNG: "image/png",
    TileFormat.JPG: "image/jpeg",
    TileFormat.WEBP: "image/webp",
    TileFormat.PBF: "application/x-protobuf",
}

def _is_webp(data: bytes) -> bool:
    return data[:4] == b'RIFF' and data[8:12] == b'WEBP'

# Checked in order, first match wins.
# Compressed payloads only ever hold vector tiles in MBTiles.
_SIGNATURES = [
    (lambda data: data.startswith(GZIP_MAGIC), TileFormat.PBF),
    (lambda data: data.startswith(ZLIB_MAGIC), TileFormat.PBF),
    (lambda data: data.startswith(PNG_MAGIC), TileFormat.PNG),
    (lambda data: data.startswith(JPG_MAGIC), TileFormat.JPG),
    (_is_webp, TileFormat.WEBP),
]

# %%
def detect_tile_format(data: bytes) -> TileFormat:
    """Classify a tile payload from its leading bytes"""
    if data:
        for matches, tile_format in _SIGNATURES:
            if matches(data):
                return tile_format
    raise UnrecognizedFormatError(f"Could not detect tile format from leading bytes {bytes(data[:8])!r}")

def detect_tile_size(tile_format: TileFormat, data: bytes) -> int:
    """Return the tile width in pixels, or 0 when the format does not carry it.

    Only PNG is inspected: the IHDR chunk always follows the signature, so the
    width is the big-endian uint32 at offset 16.
    """
    if tile_format != TileFormat.PNG:
        return 0

    if len(data) < 24 or data[12:16] != b'IHDR':
        raise UnrecognizedFormatError(f"PNG tile header is truncated or malformed ({len(data)} bytes)")
    return struct.unpack('>I', data[16:20])[0]

def detect_compression(data: bytes) -> Optional[str]:
    """Content-Encoding of a compressed vector tile, None if uncompressed"""
    if data.startswith(GZIP_MAGIC):
        return "gzip"
    if data.startswith(ZLIB_MAGIC):
        return "deflate"
    return None
