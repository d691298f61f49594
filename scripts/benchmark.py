"""Micro-benchmarks for the detector on synthetic filenames."""

from __future__ import annotations

import time

from runzip.data.generator import generate_filenames
from runzip.detector import DetectionStrategy, detect


def benchmark_detect(
    count: int = 500, runs: int = 3, strategy: DetectionStrategy = DetectionStrategy.FREQUENCY
) -> dict[str, float]:
    names = generate_filenames(count=count)
    best = None
    for _ in range(runs):
        start = time.perf_counter()
        for name in names:
            detect(name.raw, strategy)
        elapsed = time.perf_counter() - start
        best = elapsed if best is None or elapsed < best else best
    per_second = len(names) / best if best else 0.0
    return {"names": len(names), "best_seconds": best or 0.0, "names_per_second": per_second}


if __name__ == "__main__":
    for strategy in DetectionStrategy:
        print(strategy.value, benchmark_detect(strategy=strategy))
