# %%
#|export
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union
import json
import re

from .errors import DecodeError

# A decoded metadata value: str, int, or list of floats for the known keys.
# Keys merged in from the "json" row may hold any JSON value (objects,
# arrays, numbers, booleans, null).
MetadataValue = Union[str, int, float, bool, None, List[Any], Dict[str, Any]]

ZOOM_KEYS = ("minzoom", "maxzoom")
FLOAT_LIST_KEYS = ("bounds", "center")

_INTEGER = re.compile(r'[+-]?[0-9]+')

def metadata_text(key: str, value: Union[str, bytes, int, float]) -> str:
    """Render a metadata value of any SQLite storage class as text.

    BLOBs are read as UTF-8 and whole REALs lose their ".0", so 2.0 reads
    as "2".
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bytes):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"Cannot read metadata item {key}: value is not UTF-8 text") from e
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)

def parse_int(value: str) -> int:
    """Parse a base-10 integer; surrounding whitespace is not allowed"""
    if not _INTEGER.fullmatch(value):
        raise ValueError(f"invalid integer {value!r}")
    return int(value)

def parse_floats(value: str) -> List[float]:
    """Convert a comma-delimited string to floats, e.g. "1.5, 2.1" -> [1.5, 2.1]"""
    try:
        if '_' in value:
            raise ValueError("digit separators are not allowed")
        return [float(part.strip()) for part in value.split(',')]
    except ValueError as e:
        raise ValueError(f"could not parse {value!r} to floats: {e}") from e

# %%
def decode_metadata(rows: Iterable[Tuple[str, str]]) -> Dict[str, MetadataValue]:
    """Decode (name, value) rows from the metadata table.

    minzoom/maxzoom become ints, bounds/center lists of floats, and the keys
    of a "json" document are merged into the result. Rows are applied in the
    order given, so a later row (or json key) overwrites an earlier one.
    Anything else is kept as a string.
    """
    metadata: Dict[str, MetadataValue] = {}
    for key, value in rows:
        if key in ZOOM_KEYS:
            try:
                metadata[key] = parse_int(value)
            except ValueError as e:
                raise DecodeError(f"Cannot read metadata item {key}: {e}") from e
        elif key in FLOAT_LIST_KEYS:
            try:
                metadata[key] = parse_floats(value)
            except ValueError as e:
                raise DecodeError(f"Cannot read metadata item {key}: {e}") from e
        elif key == "json":
            try:
                document = json.loads(value)
            except ValueError as e:
                raise DecodeError(f"Unable to parse JSON metadata item: {e}") from e
            if not isinstance(document, dict):
                raise DecodeError(f"JSON metadata item must be an object, got {type(document).__name__}")
            metadata.update(document)
        else:
            metadata[key] = value
    return metadata

def missing_zoom_keys(metadata: Dict[str, MetadataValue]) -> List[str]:
    return [key for key in ZOOM_KEYS if key not in metadata]

def merge_zoom_range(metadata: Dict[str, MetadataValue],
                     zoom_range: Tuple[Optional[int], Optional[int]]) -> Dict[str, MetadataValue]:
    """Fill in whichever of minzoom/maxzoom is absent from a (min, max) pair.

    A pair containing None (an empty tiles table) leaves the mapping as is.
    """
    min_zoom, max_zoom = zoom_range
    if min_zoom is None or max_zoom is None:
        return metadata
    metadata.setdefault("minzoom", int(min_zoom))
    metadata.setdefault("maxzoom", int(max_zoom))
    return metadata
