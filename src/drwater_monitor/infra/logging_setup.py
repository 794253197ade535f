import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Names both logging and uvicorn accept.
CANONICAL_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def normalize_level(level: str) -> str:
    """Map aliases like "warn" or "fatal" to a canonical level name; unknown names become INFO."""
    resolved = logging.getLevelName(str(level).strip().upper())
    if not isinstance(resolved, int):
        return "INFO"
    name = logging.getLevelName(resolved)
    return name if name in CANONICAL_LEVELS else "INFO"


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging once for the monitor process."""
    resolved = getattr(logging, normalize_level(level))
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger().setLevel(resolved)
    # httpx logs every request at INFO; a 2 s poll would drown the log.
    logging.getLogger("httpx").setLevel(max(resolved, logging.WARNING))
