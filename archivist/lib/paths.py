import os
from pathlib import Path


def data_dir() -> Path:
    """Returns the data directory, ~/.archivist (override with ARCHIVIST_HOME)."""
    override = os.environ.get("ARCHIVIST_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".archivist"


def package_root() -> Path:
    """Returns archivist package root directory."""
    return Path(__file__).resolve().parent.parent


def config_file() -> Path:
    return data_dir() / "config.yaml"


def records_file() -> Path:
    """Returns the default archive records document, ~/.archivist/archives.json."""
    return data_dir() / "archives.json"
