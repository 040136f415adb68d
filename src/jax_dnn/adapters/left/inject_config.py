from __future__ import annotations

from typing import Callable, Optional

import inject

from jax_dnn.core.ports.device_transfer import DeviceTransferPort
from jax_dnn.core.ports.metrics_sink import MetricsSinkPort
from jax_dnn.core.ports.network import NetworkPort
from jax_dnn.core.ports.progress_reporter import ProgressReporterPort
from jax_dnn.core.use_cases.train_network import TrainNetworkUseCase


def training_bindings(
    *,
    network: NetworkPort,
    progress_reporter: ProgressReporterPort,
    device: DeviceTransferPort,
    metrics_sink: Optional[MetricsSinkPort] = None,
) -> Callable[[inject.Binder], None]:
    """Binder for one `train` run: the adapters plus a use case built from them."""

    use_case = TrainNetworkUseCase(
        network=network,
        progress_reporter=progress_reporter,
        metrics_sink=metrics_sink,
        device=device,
    )

    def bind(binder: inject.Binder) -> None:
        binder.bind(NetworkPort, network)
        binder.bind(ProgressReporterPort, progress_reporter)
        binder.bind(DeviceTransferPort, device)
        # the sink is optional; leave it unbound so lookups fail loudly
        if metrics_sink is not None:
            binder.bind(MetricsSinkPort, metrics_sink)
        binder.bind(TrainNetworkUseCase, use_case)

    return bind


def configure_injections(
    *,
    network: NetworkPort,
    progress_reporter: ProgressReporterPort,
    device: DeviceTransferPort,
    metrics_sink: Optional[MetricsSinkPort] = None,
) -> None:
    """Install the training bindings, replacing any earlier configuration."""

    inject.configure(
        training_bindings(
            network=network,
            progress_reporter=progress_reporter,
            device=device,
            metrics_sink=metrics_sink,
        ),
        clear=True,
    )
