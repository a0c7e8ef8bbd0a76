#!/usr/bin/env python3
"""
Safe Write Operations with Atomic Writes and Checksums

Writes to a temporary file next to the destination, computes a checksum and
then atomically replaces the destination. Used for ranking/timeline CSV
exports and for the JSON league store.
"""

import hashlib
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import pandas as pd

from billiards_ranking.utils.json_safety import serialize_paths


def compute_file_checksum(file_path: Path, algorithm: str = 'md5') -> str:
    """
    Compute checksum for a file.

    Args:
        file_path: Path to the file
        algorithm: Hash algorithm ('md5', 'sha1', 'sha256')

    Returns:
        Hexadecimal checksum string
    """
    hash_obj = hashlib.new(algorithm)

    with open(file_path, 'rb') as f:
        for chunk in iter(lambda: f.read(4096), b""):
            hash_obj.update(chunk)

    return hash_obj.hexdigest()


def _finalize(temp_path: Path, path: Path, fmt: str, logger: logging.Logger) -> Dict[str, Union[str, int, Path]]:
    checksum = compute_file_checksum(temp_path)
    size_bytes = temp_path.stat().st_size

    temp_path.replace(path)

    logger.info(f"Successfully wrote {fmt.upper()}: {path} ({size_bytes:,} bytes, MD5: {checksum})")
    return {
        "path": path,
        "checksum": checksum,
        "size_bytes": size_bytes,
        "format": fmt
    }


def safe_write_csv(df: pd.DataFrame, path: Union[str, Path],
                   logger: Optional[logging.Logger] = None) -> Dict[str, Union[str, int, Path]]:
    """
    Safely write DataFrame to CSV with atomic operation and checksum.

    Args:
        df: pandas DataFrame to write
        path: Destination file path
        logger: Optional logger instance

    Returns:
        Dictionary with path, checksum, and size information
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_suffix('.tmp')

    try:
        logger.debug(f"Writing CSV to temporary file: {temp_path}")
        df.to_csv(temp_path, index=False)
        return _finalize(temp_path, path, "csv", logger)
    except Exception as e:
        if temp_path.exists():
            temp_path.unlink()
        logger.error(f"Failed to write CSV to {path}: {e}")
        raise


def safe_write_json(data: Any, path: Union[str, Path],
                    logger: Optional[logging.Logger] = None) -> Dict[str, Union[str, int, Path]]:
    """
    Safely write JSON data with atomic operation and checksum.

    Args:
        data: JSON-serializable data (Path objects are converted to strings)
        path: Destination file path
        logger: Optional logger instance

    Returns:
        Dictionary with path, checksum, and size information
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_suffix('.tmp')

    try:
        logger.debug(f"Writing JSON to temporary file: {temp_path}")
        with open(temp_path, 'w', encoding='utf-8') as f:
            json.dump(serialize_paths(data), f, indent=2, ensure_ascii=False, default=str)
        return _finalize(temp_path, path, "json", logger)
    except Exception as e:
        if temp_path.exists():
            temp_path.unlink()
        logger.error(f"Failed to write JSON to {path}: {e}")
        raise
