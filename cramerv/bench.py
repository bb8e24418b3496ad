"""Timing harness comparing registered Cramér's V implementations."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from .config import BenchConfig
from .reference import is_ok
from .registry import ImplementationRegistry, registry as default_registry
from .utils import RNGConfig, random_labels


logger = logging.getLogger(__name__)


class BenchmarkError(RuntimeError):
    """Raised when an implementation disagrees with the reference implementation."""

    def __init__(self, message: str, *, implementation: str, size: int) -> None:
        super().__init__(message)
        self.implementation = implementation
        self.size = size


@dataclass(slots=True)
class BenchResult:
    """Timings for one implementation at one sample size."""

    implementation: str
    size: int
    timings: list[float] = field(default_factory=list)
    relative: Optional[float] = None

    @property
    def best(self) -> float:
        return min(self.timings)

    @property
    def mean(self) -> float:
        return sum(self.timings) / len(self.timings)


def run_benchmark(
    config: BenchConfig,
    registry: Optional[ImplementationRegistry] = None,
    progress_callback: Optional[Callable[[int], None]] = None,
) -> list[BenchResult]:
    """Check then time every configured implementation at every sample size.

    Each implementation is first compared against ``config.reference`` with
    :func:`cramerv.reference.is_ok`; a mismatch raises :class:`BenchmarkError`
    before any timing happens for that size. ``progress_callback`` receives
    the number of completed (implementation, size) pairs.
    """

    if registry is None:
        registry = default_registry
    reference = registry.get(config.reference)
    implementations = {name: registry.get(name) for name in config.implementations}
    rng_config = RNGConfig(config.seed)

    results: list[BenchResult] = []
    done = 0
    for offset, size in enumerate(config.sizes):
        rng = rng_config.fork(offset).numpy()
        x = random_labels(rng, size, config.row_levels, prefix="r")
        y = random_labels(rng, size, config.column_levels, prefix="c")

        size_results: list[BenchResult] = []
        for name, func in implementations.items():
            if not is_ok(func, x, y, reference=reference, tolerance=config.tolerance):
                raise BenchmarkError(
                    f"implementation {name!r} disagrees with {config.reference!r} at size {size}",
                    implementation=name,
                    size=size,
                )

            result = BenchResult(implementation=name, size=size)
            for _ in range(config.repeats):
                started = time.perf_counter()
                func(x, y)
                result.timings.append(time.perf_counter() - started)
            logger.debug("%s size=%d best=%.6fs", name, size, result.best)
            size_results.append(result)

            done += 1
            if progress_callback is not None:
                progress_callback(done)

        fastest = min(item.best for item in size_results)
        for item in size_results:
            item.relative = item.best / fastest if fastest > 0 else 1.0
        results.extend(size_results)

    logger.info(
        "Benchmarked %d implementations across %d sizes", len(implementations), len(config.sizes)
    )
    return results


def summarise(results: list[BenchResult]) -> list[dict[str, Any]]:
    """Flatten results into JSON-friendly rows ordered by size then relative speed."""

    rows = [
        {
            "implementation": result.implementation,
            "size": result.size,
            "best": result.best,
            "mean": result.mean,
            "relative": round(result.relative, 3) if result.relative is not None else None,
            "repeats": len(result.timings),
        }
        for result in results
    ]
    rows.sort(key=lambda row: (row["size"], row["relative"] or 0.0))
    return rows
