from datetime import datetime, timezone
from enum import Enum
import os
from typing import List, Optional

TEMPLATE_FILE_EXTENSION = ".json"
INDEX_TIMESTAMP_FORMAT = "%Y-%m-%d-%H:%M:%S"


class ExitCode(Enum):
    SUCCESS = 0
    FAILURE = 1


def alias_from_path(file_path: str) -> str:
    """The alias and template name for a template file is its base name without the extension."""
    return os.path.splitext(os.path.basename(file_path))[0]


def is_template_file(path: str) -> bool:
    return path.endswith(TEMPLATE_FILE_EXTENSION)


def list_template_files(directory: str) -> List[str]:
    """
    Returns the paths of every non-hidden regular file in the directory, sorted by file name.
    Raises OSError if the directory can't be read.
    """
    return [
        os.path.join(directory, entry)
        for entry in sorted(os.listdir(directory))
        if not entry.startswith(".") and not os.path.isdir(os.path.join(directory, entry))
    ]


def generate_index_name(name: str, now: Optional[datetime] = None, extra_suffix: Optional[str] = None) -> str:
    # Colons aren't friendly in index names, so the time portion is hyphenated as well. The format keeps
    # lexicographic order equal to chronological order, which cleanup depends on.
    if now is None:
        now = datetime.now(timezone.utc)
    timestamp = now.strftime(INDEX_TIMESTAMP_FORMAT).replace(":", "-")
    index = f"{name}-{timestamp}"
    if extra_suffix:
        index += f"-{extra_suffix}"
    return index
