"""Utility helpers for seeded RNG and sample label generation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np


@dataclass(slots=True)
class RNGConfig:
    """Configuration for deterministic random number generation."""

    seed: Optional[int] = None

    def fork(self, offset: int) -> "RNGConfig":
        """Return a new config with a deterministic offset applied."""

        if self.seed is None:
            return RNGConfig(None)
        return RNGConfig(self.seed + offset)

    def numpy(self) -> np.random.Generator:
        """Create a numpy Generator seeded consistently."""

        return np.random.default_rng(self.seed)


def random_labels(
    rng: np.random.Generator, size: int, levels: int, *, prefix: str = "L"
) -> list[str]:
    """Draw ``size`` uniformly random labels from ``levels`` categories."""

    if size <= 0:
        raise ValueError("size must be positive")
    if levels <= 0:
        raise ValueError("levels must be positive")
    names = np.array([f"{prefix}{idx}" for idx in range(levels)], dtype=object)
    return names[rng.integers(0, levels, size=size)].tolist()
