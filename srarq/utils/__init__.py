"""
Utilities package - Helper functions and classes.

Contains implementations for:
- Metrics calculation (throughput, efficiency, delay)
- Ring and reorder buffers
- Logging utilities
"""

from .metrics import MetricsCollector
from .buffer import RingBuffer, ReorderBuffer
from .logger import LogLevel, SimulationLogger, get_logger

__all__ = [
    'MetricsCollector',
    'RingBuffer',
    'ReorderBuffer',
    'LogLevel',
    'SimulationLogger',
    'get_logger'
]
