from __future__ import annotations

from collections import OrderedDict

import jax
import numpy as np

from jax_dnn.core.domain.entities.base import Batch, BatchRange
from jax_dnn.core.ports.device_transfer import DeviceTransferPort

_MB = 1024 * 1024


class DeviceBatchCache(DeviceTransferPort):
    """Bounded LRU of device-resident batches.

    Built once by the composition root and shared by every training and
    evaluation pass of a run. Entries are keyed by the identity of the source
    array plus the row range; each entry holds a reference to its source so
    the identity cannot be reused while cached.
    """

    def __init__(self, *, cache_mb: int = 16, device: jax.Device | None = None) -> None:
        if cache_mb < 0:
            raise ValueError(f"cache_mb must be >= 0, got {cache_mb}")
        self._capacity = int(cache_mb) * _MB
        self._device = device
        self._entries: OrderedDict[tuple[int, int, int], tuple[np.ndarray, Batch, int]] = OrderedDict()
        self._used = 0
        self.hits = 0
        self.misses = 0

    @property
    def capacity_bytes(self) -> int:
        return self._capacity

    @property
    def used_bytes(self) -> int:
        return self._used

    def __len__(self) -> int:
        return len(self._entries)

    def put(self, *, source: np.ndarray, batch_range: BatchRange, batch: Batch) -> Batch:
        key = (id(source), batch_range.start, batch_range.end)
        entry = self._entries.get(key)
        if entry is not None:
            self._entries.move_to_end(key)
            self.hits += 1
            return entry[1]

        self.misses += 1
        x = np.asarray(batch.x)
        y = np.asarray(batch.y)
        nbytes = x.nbytes + y.nbytes
        on_device = Batch(x=jax.device_put(x, self._device), y=jax.device_put(y, self._device))

        if nbytes > self._capacity:
            return on_device

        while self._used + nbytes > self._capacity:
            _, (_, _, evicted) = self._entries.popitem(last=False)
            self._used -= evicted

        self._entries[key] = (source, on_device, nbytes)
        self._used += nbytes
        return on_device

    def clear(self) -> None:
        self._entries.clear()
        self._used = 0
