from __future__ import annotations

from typing import Protocol

import numpy as np

from jax_dnn.core.domain.entities.base import Batch, BatchRange


class DeviceTransferPort(Protocol):
    """Port for moving host batches to accelerator memory.

    `put` returns a batch whose arrays can be used right away; any
    pipelining stays inside the adapter.
    """

    def put(self, *, source: np.ndarray, batch_range: BatchRange, batch: Batch) -> Batch: ...
