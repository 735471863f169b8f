"""Environment file loading for the CLI."""

from pathlib import Path
from typing import List, Optional, Sequence

from dotenv import load_dotenv

ENV_FILES = (".env.local", ".env")


def load_env_files(
    search_dir: Optional[Path] = None,
    names: Sequence[str] = ENV_FILES,
) -> List[Path]:
    """Load ``.env.local`` then ``.env`` from ``search_dir``.

    Variables already present in the process environment are never
    overridden, and the first file to define a variable wins.

    Returns:
        The files that were found and loaded
    """
    base = search_dir or Path.cwd()
    loaded = []
    for name in names:
        path = base / name
        if path.is_file():
            load_dotenv(path, override=False)
            loaded.append(path)
    return loaded
