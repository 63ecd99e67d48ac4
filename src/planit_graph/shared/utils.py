"""
Utilities Module - Common helper functions.
==========================================

Provides utility functions for:
- Hashing (SHA256 for cache keys and deterministic seeds)
- Course-code normalization
- File I/O (JSON, JSONL) for course and relation records
"""

import hashlib
import json
import re
from pathlib import Path
from typing import Any, Iterable, Iterator, TypeVar

from pydantic import BaseModel

from planit_graph.shared.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T", bound=BaseModel)


# ─────────────────────────────────────────────────────────────────────────────
# Hashing Functions
# ─────────────────────────────────────────────────────────────────────────────


def compute_hash(text: str, algorithm: str = "sha256") -> str:
    """
    Compute hash of text content.

    Args:
        text: Text to hash
        algorithm: Hash algorithm (default: sha256)

    Returns:
        Hexadecimal hash string

    Example:
        >>> compute_hash("hello world")
        'b94d27b9934d3e08a52e52d7da7dabfac484efe37a5380ee9088f7ace2efcde9'
    """
    hasher = hashlib.new(algorithm)
    hasher.update(text.encode("utf-8"))
    return hasher.hexdigest()


def compute_input_hash(*parts: Iterable[BaseModel]) -> str:
    """
    Compute a canonical hash over sequences of pydantic models.

    Models are dumped in JSON mode with sorted keys so that equal inputs
    always hash equally, regardless of dict ordering.

    Args:
        *parts: Sequences of models (e.g. course records, relation records)

    Returns:
        SHA256 hash string
    """
    payload = [[model.model_dump(mode="json") for model in part] for part in parts]
    canonical = json.dumps(payload, sort_keys=True, ensure_ascii=False)
    return compute_hash(canonical)


def stable_unit_float(key: str) -> float:
    """
    Map a string to a reproducible float in [0, 1).

    Used wherever a layout needs per-node noise that is identical across
    runs and processes.
    """
    digest = hashlib.sha256(key.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big") / float(1 << 64)


# ─────────────────────────────────────────────────────────────────────────────
# Course Codes
# ─────────────────────────────────────────────────────────────────────────────


def normalize_code(code: str) -> str:
    """
    Normalize a course code for lookups.

    Args:
        code: Course code (e.g., "cs 246", "MATH135")

    Returns:
        Upper-case code without whitespace

    Example:
        >>> normalize_code(" cs 246 ")
        'CS246'
    """
    return re.sub(r"\s+", "", code).upper()


def split_code(code: str) -> tuple[str, str]:
    """
    Split a course code into (subject, catalog number).

    Example:
        >>> split_code("MATH 135")
        ('MATH', '135')
    """
    match = re.match(r"^\s*([A-Za-z]+)\s*(\d+[A-Za-z]?)\s*$", code)
    if not match:
        raise ValueError(f"Not a course code: {code!r}")
    return match.group(1).upper(), match.group(2).upper()


# ─────────────────────────────────────────────────────────────────────────────
# JSON File I/O
# ─────────────────────────────────────────────────────────────────────────────


def ensure_parent_directory(file_path: Path) -> Path:
    """
    Ensure the parent directory of a file exists.

    Args:
        file_path: File path

    Returns:
        The file path (for chaining)
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    return file_path


def load_json(file_path: Path) -> Any:
    """
    Load data from a JSON file.

    Raises:
        FileNotFoundError: If file doesn't exist
        json.JSONDecodeError: If file is not valid JSON
    """
    with open(Path(file_path), "r", encoding="utf-8") as f:
        return json.load(f)


def save_json(file_path: Path, data: Any, indent: int = 2) -> None:
    """
    Save data to a JSON file.

    Args:
        file_path: Path to JSON file
        data: Data to save (must be JSON serializable)
        indent: Indentation level (default: 2)
    """
    file_path = ensure_parent_directory(Path(file_path))

    with open(file_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=indent, ensure_ascii=False, default=str)

    logger.debug(f"Saved JSON to {file_path}")


def load_jsonl(file_path: Path) -> Iterator[dict[str, Any]]:
    """
    Load data from a JSONL (JSON Lines) file.

    Yields one record at a time. Malformed lines are logged and skipped.

    Args:
        file_path: Path to JSONL file

    Yields:
        Parsed JSON objects
    """
    file_path = Path(file_path)

    with open(file_path, "r", encoding="utf-8") as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning(f"Invalid JSON at line {line_num} in {file_path}: {e}")
                continue


def save_jsonl(file_path: Path, items: Iterable[dict[str, Any]]) -> int:
    """
    Save data to a JSONL (JSON Lines) file.

    Returns:
        Number of items saved
    """
    file_path = ensure_parent_directory(Path(file_path))

    count = 0
    with open(file_path, "w", encoding="utf-8") as f:
        for item in items:
            f.write(json.dumps(item, ensure_ascii=False, default=str) + "\n")
            count += 1

    logger.debug(f"Saved {count} items to JSONL at {file_path}")
    return count


# ─────────────────────────────────────────────────────────────────────────────
# Pydantic Model I/O Helpers
# ─────────────────────────────────────────────────────────────────────────────


def load_records(file_path: Path, model_class: type[T]) -> list[T]:
    """
    Load a list of Pydantic models from a JSON array or a JSONL file.

    The format is chosen by extension: ``.jsonl`` is read line by line,
    anything else is parsed as JSON (a list, a single object, or an
    object with the list under a ``data`` key).

    Args:
        file_path: Path to the records file
        model_class: Pydantic model class

    Returns:
        List of model instances
    """
    file_path = Path(file_path)

    if file_path.suffix.lower() == ".jsonl":
        return [model_class.model_validate(item) for item in load_jsonl(file_path)]

    data = load_json(file_path)
    if isinstance(data, dict) and isinstance(data.get("data"), list):
        data = data["data"]
    if not isinstance(data, list):
        data = [data]
    return [model_class.model_validate(item) for item in data]


def save_models_to_json(file_path: Path, models: Iterable[BaseModel], indent: int = 2) -> None:
    """Save Pydantic models to a JSON array file."""
    data = [model.model_dump(mode="json") for model in models]
    save_json(file_path, data, indent=indent)
