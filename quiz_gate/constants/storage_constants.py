"""Storage location constants."""

import os
from pathlib import Path

DATA_DIR_ENV_VAR: str = "QUIZGATE_DATA_DIR"
DEFAULT_DATA_DIR: Path = Path(os.environ.get(DATA_DIR_ENV_VAR, Path.home() / ".quizgate"))
SLOT_FILE_SUFFIX: str = ".json"
