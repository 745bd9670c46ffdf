"""
File helpers for the lesson store, backups and exports.

Writers return True/False and log the failure instead of raising; the
repository and the exporter turn False into StorageError / ExportError.
"""

import hashlib
import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import pandas as pd


logger = logging.getLogger(__name__)

INTEGRITY_ALGORITHM = "sha256"

EXCEL_SHEET_NAME_LIMIT = 31


def save_json(data: Dict[str, Any], filepath: Path) -> bool:
    """
    Write data as pretty-printed UTF-8 JSON.

    The document goes to "<name>.tmp" first and is then renamed over the
    target, so an interrupted write never leaves a truncated lesson store.

    Args:
        data: JSON-serialisable dictionary
        filepath: Destination; parent directories are created

    Returns:
        True if the file was written
    """
    tmp_path = filepath.with_name(filepath.name + ".tmp")
    try:
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, filepath)

    except (OSError, TypeError, ValueError) as e:
        logger.error(f"Failed to save JSON file {filepath}: {e}", exc_info=True)
        if tmp_path.exists():
            tmp_path.unlink()
        return False

    logger.debug(f"Saved JSON file: {filepath}")
    return True


def load_json(filepath: Path) -> Optional[Any]:
    """
    Read a JSON file.

    Returns:
        Parsed content, or None if the file is missing or not valid JSON
    """
    if not filepath.exists():
        logger.warning(f"JSON file not found: {filepath}")
        return None

    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            return json.load(f)

    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in file {filepath}: {e}")
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Failed to load JSON file {filepath}: {e}", exc_info=True)
    return None


def save_csv(df: pd.DataFrame, filepath: Path) -> bool:
    """
    Write a DataFrame as CSV.

    UTF-8 with BOM, so spreadsheet applications detect the encoding of
    non-ASCII student names.
    """
    try:
        filepath.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(filepath, index=False, encoding='utf-8-sig')

    except OSError as e:
        logger.error(f"Failed to save CSV file {filepath}: {e}", exc_info=True)
        return False

    logger.debug(f"Saved CSV file: {filepath} ({len(df)} rows)")
    return True


def save_excel(sheets: Dict[str, pd.DataFrame], filepath: Path) -> bool:
    """
    Write DataFrames as the sheets of one .xlsx workbook.

    Args:
        sheets: Sheet name -> DataFrame, in sheet order. Names longer than
            Excel allows are truncated.
        filepath: Destination workbook

    Returns:
        True if the workbook was written
    """
    try:
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with pd.ExcelWriter(filepath, engine="openpyxl") as writer:
            for sheet_name, df in sheets.items():
                df.to_excel(writer, sheet_name=sheet_name[:EXCEL_SHEET_NAME_LIMIT], index=False)

    except (OSError, ValueError) as e:
        logger.error(f"Failed to save Excel file {filepath}: {e}", exc_info=True)
        return False

    logger.debug(f"Saved Excel file: {filepath} ({len(sheets)} sheets)")
    return True


def generate_filename(prefix: str, extension: str) -> str:
    """
    Timestamped export name, e.g. "lessons_2024-05_20240601_103045.xlsx".
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"{prefix}_{timestamp}.{extension}"


def compute_checksum(data: Any, algorithm: str = INTEGRITY_ALGORITHM) -> str:
    """
    Digest of the canonical (key-sorted) JSON form of data.

    Raises:
        ValueError: If the algorithm is not supported by hashlib
        TypeError: If data is not JSON-serialisable
    """
    serialized = json.dumps(data, sort_keys=True, ensure_ascii=False)
    return hashlib.new(algorithm, serialized.encode('utf-8')).hexdigest()


def save_json_with_integrity(data: Dict[str, Any], filepath: Path) -> bool:
    """
    Save data wrapped with a checksum, for backups.

    File layout:
        {"integrity": {"checksum", "algorithm", "timestamp"}, "data": data}
    """
    try:
        checksum = compute_checksum(data)
    except (TypeError, ValueError) as e:
        logger.error(f"Failed to compute checksum: {e}", exc_info=True)
        return False

    return save_json({
        "integrity": {
            "checksum": checksum,
            "algorithm": INTEGRITY_ALGORITHM,
            "timestamp": datetime.now().isoformat()
        },
        "data": data
    }, filepath)


def load_json_with_integrity(filepath: Path) -> Optional[Dict[str, Any]]:
    """
    Load a file written by save_json_with_integrity.

    Returns:
        The wrapped data if the checksum matches, None otherwise
    """
    wrapped = load_json(filepath)
    if not isinstance(wrapped, dict) or "integrity" not in wrapped or "data" not in wrapped:
        logger.error(f"Invalid integrity-protected JSON format: {filepath}")
        return None

    integrity = wrapped["integrity"] if isinstance(wrapped["integrity"], dict) else {}
    algorithm = integrity.get("algorithm", INTEGRITY_ALGORITHM)
    try:
        computed = compute_checksum(wrapped["data"], algorithm)
    except (TypeError, ValueError):
        logger.error(f"Unsupported checksum algorithm: {algorithm}")
        return None

    if computed != integrity.get("checksum"):
        logger.error(f"Integrity check failed for {filepath}: checksum mismatch")
        return None

    logger.debug(f"Integrity check passed: {filepath}")
    return wrapped["data"]
