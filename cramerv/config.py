"""Benchmark configuration and YAML loading."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import yaml


def _default_sizes() -> list[int]:
    return [100, 1000, 10000]


def _default_implementations() -> list[str]:
    return ["optimized", "crosstab", "scipy"]


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(slots=True)
class BenchConfig:
    """Settings for a benchmark run."""

    sizes: list[int] = field(default_factory=_default_sizes)
    row_levels: int = 4
    column_levels: int = 3
    repeats: int = 5
    seed: Optional[int] = 0
    implementations: list[str] = field(default_factory=_default_implementations)
    reference: str = "scipy"
    tolerance: float = 1e-9

    def __post_init__(self) -> None:
        if not isinstance(self.sizes, list) or not self.sizes or any(
            not _is_int(size) or size <= 0 for size in self.sizes
        ):
            raise ValueError("sizes must be a non-empty list of positive integers")
        for name in ("row_levels", "column_levels", "repeats"):
            if not _is_int(getattr(self, name)):
                raise ValueError(f"{name} must be an integer")
        if self.seed is not None and not _is_int(self.seed):
            raise ValueError("seed must be an integer or null")
        if not isinstance(self.implementations, list) or not all(
            isinstance(name, str) for name in self.implementations
        ):
            raise ValueError("implementations must be a list of names")
        if not isinstance(self.reference, str):
            raise ValueError("reference must be an implementation name")
        if isinstance(self.tolerance, bool) or not isinstance(self.tolerance, (int, float)):
            raise ValueError("tolerance must be a number")
        if self.row_levels < 2 or self.column_levels < 2:
            raise ValueError("row_levels and column_levels must be at least 2")
        if self.repeats <= 0:
            raise ValueError("repeats must be positive")
        if not self.implementations:
            raise ValueError("at least one implementation must be selected")
        if self.tolerance < 0:
            raise ValueError("tolerance must not be negative")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def load_bench_config(path: Optional[Path] = None, **overrides: Any) -> BenchConfig:
    """Load a :class:`BenchConfig` from YAML, applying non-None overrides on top."""

    data: dict[str, Any] = {}
    if path is not None:
        loaded = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ValueError(f"benchmark config must be a mapping, got {type(loaded).__name__}")
        data.update(loaded)

    data.update({key: value for key, value in overrides.items() if value is not None})

    known = {item.name for item in fields(BenchConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"unknown benchmark config keys: {', '.join(unknown)}")
    return BenchConfig(**data)
