# %%
import argparse
import json
import logging
import sqlite3
from pathlib import Path
import sys

from .config import Config
from .core import MBTilesDB
from .errors import MBTilesError
from .locator import find_mbtiles

logger = logging.getLogger(__name__)

def describe(db: MBTilesDB, show_metadata: bool = False) -> dict:
    """Summary of an open tileset, suitable for JSON output"""
    info = {
        "filename": db.filename,
        "format": str(db.format),
        "tile_size": db.tile_size,
        "content_type": db.content_type,
        "timestamp": db.timestamp.isoformat(),
    }
    if show_metadata:
        info["metadata"] = db.get_metadata()
    return info

def inspect(config: Config) -> tuple:
    """Open every tileset under config.root; returns (summaries, failures)"""
    summaries, failures = [], 0
    for path in find_mbtiles(config.root):
        try:
            with MBTilesDB(path) as db:
                summaries.append(describe(db, config.show_metadata))
        except (MBTilesError, sqlite3.Error) as e:
            logger.error(f"Skipping {path}: {e}")
            failures += 1
    return summaries, failures

# %%
def main(argv=None):
    parser = argparse.ArgumentParser(description="Inspect MBTiles tilesets")
    parser.add_argument("root", type=str, nargs='?', help="MBTiles file or directory to search")
    parser.add_argument("--metadata", action="store_true", help="Include decoded metadata")
    parser.add_argument("--log-level", type=str, default="INFO", help="Logging level (default: INFO)")
    args = parser.parse_args(argv)

    if not args.root:
        print("No MBTiles file or directory specified")
        sys.exit(2)

    config = Config(
        root=Path(args.root),
        show_metadata=args.metadata,
        log_level=args.log_level
    )
    logging.basicConfig(level=config.log_level.upper(), stream=sys.stderr)

    try:
        summaries, failures = inspect(config)
    except OSError as e:
        logger.error(f"Could not search {config.root}: {e}")
        sys.exit(1)

    print(json.dumps(summaries, indent=2))
    if failures:
        sys.exit(1)

# %%
if __name__ == "__main__":
    main()
