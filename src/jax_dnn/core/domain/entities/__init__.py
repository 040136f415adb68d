"""Datasets, batches and network functions used by the training core.

Nothing here touches files or devices; loaders and caches live in adapters.
"""

from .base import Batch, BatchRange, DatasetSplit
from .dataset import DataSet, DatasetInfo, split_dataset, train_split_size
from .model import MlpFns, NetworkFns, OutputKind, Params
