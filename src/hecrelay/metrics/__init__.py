from .metrics import MetricsCollector, RelayMetrics

__all__ = ["MetricsCollector", "RelayMetrics"]
