# %%
#|export
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterator, Optional, Tuple, Union
import contextlib
import logging
import math

from .errors import (
    ClosedHandleError,
    IncompleteContainerError,
    InvalidContainerError,
    NotFoundError,
    OpenError,
    UnrecognizedFormatError,
)
from .formats import TileFormat, detect_compression, detect_tile_format, detect_tile_size
from .locator import has_journal
from .metadata import MetadataValue, decode_metadata, merge_zoom_range, metadata_text, missing_zoom_keys

logger = logging.getLogger(__name__)

REQUIRED_TABLES = ("tiles", "metadata")

TILE_QUERY = 'SELECT tile_data FROM tiles WHERE zoom_level = ? AND tile_column = ? AND tile_row = ?'
SAMPLE_TILE_QUERY = 'SELECT tile_data FROM tiles LIMIT 1'
METADATA_QUERY = 'SELECT name, value FROM metadata WHERE length(value) > 0'
ZOOM_RANGE_QUERY = 'SELECT min(zoom_level), max(zoom_level) FROM tiles'

def _round_to_second(mtime: float) -> datetime:
    return datetime.fromtimestamp(math.floor(mtime + 0.5), tz=timezone.utc)

class MBTilesDB:
    """Read-only handle on an MBTiles file.

    Opening validates the file and sniffs one tile to fix the tileset's
    format and tile size; those never change afterwards. Tiles are addressed
    by the coordinates stored in the file (TMS rows), no flipping is done here.
    """

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path)
        self._conn: Optional[sqlite3.Connection] = None
        self._tile_query: Optional[str] = None

        if not self.db_path.exists():
            raise NotFoundError(f"MBTiles file not found: {db_path}")
        if has_journal(self.db_path):
            raise IncompleteContainerError(
                f"Refusing to open MBTiles file with associated -journal file (incomplete tileset): {db_path}"
            )
        self._timestamp = _round_to_second(self.db_path.stat().st_mtime)

        try:
            self._conn = self._connect()
            self._validate_required_tables()
            sample = self._sample_tile()
            self._format = detect_tile_format(sample)
            self._tile_size = detect_tile_size(self._format, sample)
            self._compression = detect_compression(sample)
            self._tile_query = self._prepare_tile_lookup()
        except BaseException:
            self.close()
            raise

        logger.info(f"Opened {self.db_path} (format: {self._format}, tile size: {self._tile_size})")

    def _connect(self) -> sqlite3.Connection:
        uri = f"{self.db_path.resolve().as_uri()}?mode=ro"
        try:
            return sqlite3.connect(uri, uri=True, check_same_thread=False)
        except sqlite3.Error as e:
            raise OpenError(f"Could not open {self.db_path}: {e}") from e

    def _validate_required_tables(self):
        placeholders = ", ".join("?" for _ in REQUIRED_TABLES)
        try:
            cursor = self._conn.execute(
                f"SELECT name FROM sqlite_master WHERE type IN ('table', 'view') AND name IN ({placeholders})",
                REQUIRED_TABLES,
            )
            found = {name for (name,) in cursor.fetchall()}
        except sqlite3.Error as e:
            raise OpenError(f"Could not read schema of {self.db_path}: {e}") from e

        missing = [name for name in REQUIRED_TABLES if name not in found]
        if missing:
            raise InvalidContainerError(
                f"Missing one or more required tables in {self.db_path}: {', '.join(missing)}"
            )

    def _sample_tile(self) -> bytes:
        try:
            row = self._conn.execute(SAMPLE_TILE_QUERY).fetchone()
        except sqlite3.Error as e:
            raise UnrecognizedFormatError(f"Could not read a tile from {self.db_path}: {e}") from e
        if row is None or row[0] is None:
            raise UnrecognizedFormatError(f"No tiles found in {self.db_path}")
        if not isinstance(row[0], bytes):
            raise UnrecognizedFormatError(f"tile_data in {self.db_path} is not a blob")
        return row[0]

    def _prepare_tile_lookup(self) -> str:
        # Running the lookup once compiles it into the connection's statement
        # cache; every get_tile call reuses that compiled statement.
        try:
            self._conn.execute(TILE_QUERY, (0, 0, 0)).fetchall()
        except sqlite3.Error as e:
            raise OpenError(f"Could not prepare tile query for {self.db_path}: {e}") from e
        return TILE_QUERY

    @contextlib.contextmanager
    def get_connection(self) -> Iterator[sqlite3.Connection]:
        """Yield the open connection, failing if the handle was closed"""
        if self._conn is None:
            raise ClosedHandleError(f"Cannot read from closed MBTiles file: {self.db_path}")
        yield self._conn

    @property
    def filename(self) -> str:
        return str(self.db_path)

    @property
    def format(self) -> TileFormat:
        return self._format

    @property
    def tile_size(self) -> int:
        """Tile size in pixels, 0 if it could not be detected for the format"""
        return self._tile_size

    @property
    def timestamp(self) -> datetime:
        return self._timestamp

    @property
    def content_type(self) -> str:
        return self._format.content_type

    @property
    def compression(self) -> Optional[str]:
        return self._compression

    @property
    def closed(self) -> bool:
        return self._conn is None

    def get_tile(self, z: int, x: int, y: int) -> Optional[bytes]:
        """Return the tile stored at z/x/y, or None if there is no such tile"""
        conn, query = self._conn, self._tile_query
        if conn is None or query is None:
            raise ClosedHandleError(f"Cannot read tile from closed MBTiles file: {self.db_path}")
        result = conn.execute(query, (z, x, y)).fetchone()
        if result is None:
            logger.debug(f"Tile {z}/{x}/{y} not found in {self.db_path}")
            return None
        return result[0]

    read_tile = get_tile

    def get_metadata(self) -> Dict[str, MetadataValue]:
        """Read and decode the metadata table.

        Missing minzoom/maxzoom are inferred from the zoom levels present in
        the tiles table. That step is best effort: if it fails, the metadata
        read so far is returned without them.
        """
        with self.get_connection() as conn:
            rows = [
                (name, metadata_text(name, value))
                for name, value in conn.execute(METADATA_QUERY).fetchall()
            ]
            metadata = decode_metadata(rows)

            if missing_zoom_keys(metadata):
                zoom_range = self._infer_zoom_range(conn)
                if zoom_range is not None:
                    merge_zoom_range(metadata, zoom_range)
            return metadata

    read_metadata = get_metadata

    def _infer_zoom_range(self, conn: sqlite3.Connection) -> Optional[Tuple[Optional[int], Optional[int]]]:
        try:
            return conn.execute(ZOOM_RANGE_QUERY).fetchone()
        except sqlite3.Error as e:
            # metadata is advisory; return what was decoded rather than fail
            logger.warning(f"Could not infer zoom range from tiles in {self.db_path}: {e}")
            return None

    def close(self):
        """Release the tile cursor and connection. Safe to call repeatedly."""
        conn = self._conn
        self._tile_query = None
        self._conn = None
        if conn is not None:
            with contextlib.suppress(sqlite3.Error):
                conn.close()
            logger.info(f"Closed {self.db_path}")

    def __enter__(self) -> "MBTilesDB":
        return self

    def __exit__(self, *exc_info):
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else str(self._format)
        return f"MBTilesDB({self.filename!r}, {state})"

def open_mbtiles(db_path: Union[str, Path]) -> MBTilesDB:
    return MBTilesDB(db_path)
