import logging


def setup(level: str | int = "WARNING") -> None:
    """Configure root logging once for CLI runs."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    logging.basicConfig(level=level, format="[archivist] %(levelname)s %(name)s: %(message)s")
    logging.getLogger("discord").setLevel(max(level, logging.WARNING))
