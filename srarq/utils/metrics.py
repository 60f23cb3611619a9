"""
Metrics Collection and Calculation

This module provides utilities for calculating and tracking
performance metrics of a simulation run: throughput, transmission
efficiency, retransmission rate and end-to-end delay.
"""

from typing import Dict, List, Optional
import statistics

from ..config import PAYLOAD_SIZE


class MetricsCollector:
    """
    Collects and calculates performance metrics for the simulation.

    Primary metric: Throughput = Messages Delivered / Simulated Time

    Attributes:
        start_time: Simulation start time
        end_time: Simulation end time
        payload_size: Application payload size in bytes
    """

    def __init__(self, payload_size: int = PAYLOAD_SIZE):
        """
        Initialize metrics collector.

        Args:
            payload_size: Bytes per application message
        """
        self.payload_size = payload_size
        self.delay_samples: List[float] = []
        self.reset()

    def start(self, time: float):
        """Mark simulation start."""
        self.start_time = time

    def finish(self, time: float):
        """Mark simulation end."""
        self.end_time = time

    def record_message_generated(self):
        """Record a message produced by the application."""
        self.messages_generated += 1

    def record_message_accepted(self):
        """Record a message accepted by the sender."""
        self.messages_accepted += 1

    def record_message_rejected(self):
        """Record a send refused because the window was full."""
        self.messages_rejected += 1

    def record_message_dropped(self):
        """Record a rejected message the application gave up on."""
        self.messages_dropped += 1

    def record_message_delivered(self, delay: Optional[float] = None):
        """
        Record a message delivered in order at B.

        Args:
            delay: Time from generation to delivery, if known
        """
        self.messages_delivered += 1
        if delay is not None:
            self.delay_samples.append(delay)

    def absorb(self, sender_stats: dict, receiver_stats: dict, channel_stats: dict):
        """Copy end-of-run counters from the entities and the channel."""
        self.sender_stats = dict(sender_stats)
        self.receiver_stats = dict(receiver_stats)
        self.channel_stats = dict(channel_stats)

    @property
    def total_time(self) -> float:
        if self.start_time is None or self.end_time is None:
            return 0.0
        return self.end_time - self.start_time

    def calculate_throughput(self) -> float:
        """
        Calculate throughput.

        Throughput = Messages Delivered / Total Simulated Time

        Returns:
            Messages per time unit
        """
        if self.total_time <= 0:
            return 0.0
        return self.messages_delivered / self.total_time

    def calculate_goodput(self) -> float:
        """Delivered application bytes per time unit."""
        return self.calculate_throughput() * self.payload_size

    def calculate_efficiency(self) -> float:
        """
        Calculate transmission efficiency.

        Efficiency = Messages Delivered / Data Packets Put On The Channel

        Returns:
            Efficiency ratio (0-1)
        """
        sent = self.channel_stats.get('data_packets_sent', 0)
        if sent <= 0:
            return 0.0
        return self.messages_delivered / sent

    def calculate_retransmission_rate(self) -> float:
        """
        Calculate retransmission rate.

        Returns:
            Retransmissions / Messages Accepted
        """
        accepted = self.sender_stats.get('messages_accepted', 0)
        if accepted <= 0:
            return 0.0
        return self.sender_stats.get('packets_resent', 0) / accepted

    def get_delay_statistics(self) -> Dict[str, float]:
        """
        Get end-to-end delay statistics.

        Returns:
            Dictionary with min, max, mean, median, stdev delay
        """
        if not self.delay_samples:
            return {
                'min': 0, 'max': 0, 'mean': 0,
                'median': 0, 'stdev': 0, 'samples': 0
            }

        return {
            'min': min(self.delay_samples),
            'max': max(self.delay_samples),
            'mean': statistics.mean(self.delay_samples),
            'median': statistics.median(self.delay_samples),
            'stdev': statistics.stdev(self.delay_samples) if len(self.delay_samples) > 1 else 0,
            'samples': len(self.delay_samples)
        }

    def get_summary(self) -> Dict:
        """
        Get comprehensive metrics summary.

        Returns:
            Dictionary with all metrics
        """
        return {
            # Time
            'total_time': self.total_time,
            'start_time': self.start_time,
            'end_time': self.end_time,

            # Primary metrics
            'throughput': self.calculate_throughput(),
            'goodput': self.calculate_goodput(),
            'efficiency': self.calculate_efficiency(),
            'retransmission_rate': self.calculate_retransmission_rate(),

            # Application
            'messages_generated': self.messages_generated,
            'messages_accepted': self.messages_accepted,
            'messages_rejected': self.messages_rejected,
            'messages_dropped': self.messages_dropped,
            'messages_delivered': self.messages_delivered,

            # Entities and channel
            **self.sender_stats,
            **self.receiver_stats,
            **self.channel_stats,

            # Delay
            'delay': self.get_delay_statistics()
        }

    def to_csv_row(self) -> Dict:
        """
        Get metrics as a flat dictionary suitable for CSV export.

        Returns:
            Dictionary with flattened metrics
        """
        summary = self.get_summary()
        delay = summary.pop('delay')

        flat = {**summary}
        for key, value in delay.items():
            flat[f'delay_{key}'] = value

        return flat

    def reset(self):
        """Reset all metrics."""
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None
        self.messages_generated = 0
        self.messages_accepted = 0
        self.messages_rejected = 0
        self.messages_dropped = 0
        self.messages_delivered = 0
        self.delay_samples.clear()
        self.sender_stats: Dict = {}
        self.receiver_stats: Dict = {}
        self.channel_stats: Dict = {}
