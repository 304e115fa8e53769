"""External tool adapters."""
from .ffprobe import FFProbe

__all__ = ["FFProbe"]
