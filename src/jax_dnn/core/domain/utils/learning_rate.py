from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol


class LearningRatePolicy(Protocol):
    """Decides how the nominal learning rate is scaled as training progresses.

    `update` is called once per reported epoch with the in-sample accuracy and
    returns the new multiplier applied on top of `learning_rate / batch_size`.
    """

    @property
    def scale(self) -> float: ...

    def update(self, train_acc: float) -> float: ...


@dataclass
class FixedLearningRate:
    """Never changes the rate."""

    scale: float = 1.0

    def update(self, train_acc: float) -> float:
        return self.scale


@dataclass
class AccuracyMilestoneDecay:
    """Multiply the rate by `factor` each time train accuracy passes the next milestone."""

    milestones: tuple[float, ...] = (0.80, 0.85, 0.90, 0.95, 0.97, 0.98, 0.99)
    factor: float = 0.5
    scale: float = 1.0
    _phase: int = field(default=0, repr=False)

    def __post_init__(self) -> None:
        if not 0.0 < self.factor <= 1.0:
            raise ValueError(f"factor must be in (0, 1], got {self.factor}")
        if list(self.milestones) != sorted(self.milestones):
            raise ValueError("milestones must be ascending")

    @property
    def phase(self) -> int:
        return self._phase

    def update(self, train_acc: float) -> float:
        while self._phase < len(self.milestones) and train_acc > self.milestones[self._phase]:
            self.scale *= self.factor
            self._phase += 1
        return self.scale


def make_policy(kind: str) -> LearningRatePolicy:
    kind = kind.lower().strip()
    if kind == "fixed":
        return FixedLearningRate()
    if kind in {"milestone", "decay"}:
        return AccuracyMilestoneDecay()
    raise ValueError("learning-rate policy must be one of: fixed, milestone")
