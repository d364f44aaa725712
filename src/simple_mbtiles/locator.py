# %%
#|export
from pathlib import Path
from typing import List, Union
import logging
import os

from .config import JOURNAL_SUFFIX, MBTILES_EXTENSION

logger = logging.getLogger(__name__)

def journal_path(path: Union[str, Path]) -> Path:
    return Path(str(path) + JOURNAL_SUFFIX)

def has_journal(path: Union[str, Path]) -> bool:
    """True if the tileset is still being written (a -journal file sits next to it)"""
    return journal_path(path).exists()

def _is_candidate(path: Path) -> bool:
    if path.suffix != MBTILES_EXTENSION:
        return False
    if has_journal(path):
        logger.info(f"Skipping incomplete tileset: {path}")
        return False
    return True

def _raise(error: OSError):
    raise error

# %%
def find_mbtiles(root: Union[str, Path]) -> List[Path]:
    """Recursively find all .mbtiles files under root.

    Files with an associated -journal file are left out. Any error while
    walking the tree is raised.
    """
    root = Path(root)
    if root.is_file():
        return [root] if _is_candidate(root) else []

    filenames = []
    for dirpath, dirnames, files in os.walk(root, onerror=_raise):
        dirnames.sort()
        for name in sorted(files):
            path = Path(dirpath) / name
            if _is_candidate(path):
                filenames.append(path)
    return filenames
