from .hec import FlushResult, HecForwarder, HecForwarderConfig

__all__ = ["FlushResult", "HecForwarder", "HecForwarderConfig"]
