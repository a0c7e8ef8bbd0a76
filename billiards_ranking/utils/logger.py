import logging
import sys
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def setup_logging(log_path: Optional[Union[str, Path]] = None, level: int = logging.INFO) -> None:
    """Configure root logging to stdout and, optionally, an appending log file."""
    handlers = [logging.StreamHandler(sys.stdout)]

    if log_path is not None:
        log_path = Path(log_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, mode="a", encoding="utf-8"))

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
