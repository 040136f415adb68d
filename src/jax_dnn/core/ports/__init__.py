
from .device_transfer import DeviceTransferPort
from .metrics_sink import MetricsSinkPort
from .network import NetworkPort
from .progress_reporter import ProgressReporterPort

__all__ = [
	"DeviceTransferPort",
	"MetricsSinkPort",
	"NetworkPort",
	"ProgressReporterPort",
]
