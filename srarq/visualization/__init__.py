"""
Visualization package - Plotting and visualization tools.

Contains:
- Throughput heatmap over loss x corruption
"""

from .heatmap import ThroughputHeatmap

__all__ = [
    'ThroughputHeatmap'
]
