# %%
import sqlite3
import struct
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional, Tuple

import pytest

def png_header(width: int = 256, height: int = 256) -> bytes:
    """PNG signature plus IHDR chunk: enough bytes to sniff format and size"""
    ihdr = struct.pack('>II5B', width, height, 8, 6, 0, 0, 0)
    return b'\x89PNG\r\n\x1a\n' + struct.pack('>I', len(ihdr)) + b'IHDR' + ihdr + b'\x00\x00\x00\x00'

def write_mbtiles(
    path: Path,
    tiles: Iterable[Tuple[int, int, int, Optional[bytes]]] = (),
    metadata: Optional[Dict[str, str]] = None,
    with_tiles_table: bool = True,
    with_metadata_table: bool = True,
) -> Path:
    conn = sqlite3.connect(str(path))
    cursor = conn.cursor()
    if with_metadata_table:
        cursor.execute('CREATE TABLE metadata (name text, value text);')
        cursor.executemany("INSERT INTO metadata VALUES (?, ?)", (metadata or {}).items())
    if with_tiles_table:
        cursor.execute('''
            CREATE TABLE tiles (
                zoom_level integer,
                tile_column integer,
                tile_row integer,
                tile_data blob
            );
        ''')
        cursor.executemany("INSERT INTO tiles VALUES (?, ?, ?, ?)", tiles)
    conn.commit()
    conn.close()
    return path

@pytest.fixture
def make_mbtiles(tmp_path) -> Callable[..., Path]:
    """Factory writing an MBTiles file into the test's temporary directory"""
    def factory(name: str = "test.mbtiles", **kwargs) -> Path:
        return write_mbtiles(tmp_path / name, **kwargs)
    return factory
