# %%
#|export
from dataclasses import dataclass
from pathlib import Path

MBTILES_EXTENSION = ".mbtiles"
JOURNAL_SUFFIX = "-journal"

@dataclass
class Config:
    root: Path
    show_metadata: bool = False
    log_level: str = "INFO"
