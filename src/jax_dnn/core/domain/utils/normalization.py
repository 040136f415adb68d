from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path

import numpy as np


class NormType(enum.IntEnum):
    NONE = 0
    RESCALE = 1  # each dimension to [0, 1]
    STANDARD_SCORE = 2  # z = (x - u) / sigma


@dataclass(frozen=True)
class FeatureStatistics:
    """Per-dimension statistics used to normalize features."""

    minimum: np.ndarray
    maximum: np.ndarray
    mean: np.ndarray
    std: np.ndarray

    @classmethod
    def compute(cls, x: np.ndarray) -> FeatureStatistics:
        x = np.asarray(x, dtype=np.float64)
        if x.shape[0] == 0:
            zeros = np.zeros(x.shape[1])
            return cls(minimum=zeros, maximum=zeros, mean=zeros, std=zeros)
        return cls(
            minimum=x.min(axis=0),
            maximum=x.max(axis=0),
            mean=x.mean(axis=0),
            std=x.std(axis=0),
        )

    def save(self, path: str | Path) -> None:
        np.savez(path, minimum=self.minimum, maximum=self.maximum, mean=self.mean, std=self.std)

    @classmethod
    def load(cls, path: str | Path) -> FeatureStatistics:
        with np.load(path) as data:
            return cls(
                minimum=data["minimum"],
                maximum=data["maximum"],
                mean=data["mean"],
                std=data["std"],
            )


def normalize(x: np.ndarray, norm_type: NormType, stats: FeatureStatistics | None = None) -> np.ndarray:
    """Return a normalized float32 copy of `x`.

    Constant dimensions are left at 0 instead of dividing by zero.
    """

    norm_type = NormType(norm_type)
    if norm_type is NormType.NONE:
        return np.asarray(x, dtype=np.float32)

    stats = stats or FeatureStatistics.compute(x)
    x = np.asarray(x, dtype=np.float64)

    if norm_type is NormType.RESCALE:
        offset, spread = stats.minimum, stats.maximum - stats.minimum
    else:
        offset, spread = stats.mean, stats.std

    spread = np.where(spread > 0, spread, 1.0)
    return ((x - offset) / spread).astype(np.float32)
