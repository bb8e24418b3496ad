"""I/O utilities for reading categorical records from CSV and JSON files."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, TextIO

import pandas as pd

_FORMATS = {"csv", "json_array", "json_object", "jsonl"}


@dataclass(slots=True)
class LoadConfig:
    """Configuration for record loading."""

    format: str | None = None
    max_records: int | None = None

    def __post_init__(self) -> None:
        if self.format is not None and self.format not in _FORMATS:
            raise ValueError("format must be 'csv', 'json_array', 'json_object', 'jsonl', or None")
        if self.max_records is not None and self.max_records <= 0:
            raise ValueError("max_records must be positive")


def load_records(path: Path, config: LoadConfig | None = None) -> list[dict[str, Any]]:
    """Read records from a CSV, JSON array, JSON object or JSONL file."""

    config = config or LoadConfig()
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)

    records: list[dict[str, Any]] = []
    for record in _iter_records(path, _detect_format(path, config)):
        records.append(record)
        if config.max_records is not None and len(records) >= config.max_records:
            break
    return records


def load_columns(
    path: Path, x: str, y: str, config: LoadConfig | None = None
) -> tuple[list[Any], list[Any]]:
    """Extract two aligned label columns from a record file.

    Records missing either column contribute ``None`` so that the two lists
    always stay aligned by row.
    """

    records = load_records(path, config)
    if not records:
        return [], []
    for column in (x, y):
        if not any(column in record for record in records):
            raise KeyError(f"column {column!r} not found in {path}")
    return [record.get(x) for record in records], [record.get(y) for record in records]


def _iter_records(path: Path, detected_format: str) -> Iterator[dict[str, Any]]:
    if detected_format == "csv":
        frame = pd.read_csv(path)
        frame = frame.astype(object).where(frame.notna(), None)
        yield from frame.to_dict(orient="records")
        return

    if detected_format == "jsonl":
        with _open(path) as handle:
            for line in handle:
                line = line.strip()
                if not line:
                    continue
                obj = json.loads(line)
                if not isinstance(obj, dict):
                    raise ValueError("JSONL record is not an object")
                yield obj
        return

    with _open(path) as handle:
        data = json.load(handle)

    if detected_format == "json_object":
        if not isinstance(data, dict):
            raise ValueError("Expected a JSON object at root")
        yield data
        return

    if not isinstance(data, list):
        raise ValueError("Expected a JSON array at root")
    for obj in data:
        if not isinstance(obj, dict):
            raise ValueError("Array elements must be JSON objects")
        yield obj


def _detect_format(path: Path, config: LoadConfig) -> str:
    if config.format:
        return config.format

    suffix = path.suffix.lower()
    if suffix == ".csv":
        return "csv"
    if suffix == ".jsonl":
        return "jsonl"

    with _open(path) as handle:
        while True:
            char = handle.read(1)
            if not char:
                break
            if char.isspace():
                continue
            if char == "[":
                return "json_array"
            if char == "{":
                return "json_object"
            break
    raise ValueError(f"Unable to detect record format for {path}")


def _open(path: Path) -> TextIO:
    return path.open("r", encoding="utf-8")
