"""
Simulation Logger

Trace output for the ARQ entities. Lines are stamped with simulated time and
tagged with an event category; the same lines can be mirrored, without
terminal colours, into a trace file.
"""

from typing import Optional, TextIO
from datetime import datetime
from enum import IntEnum
import os

from ..config import DEFAULT_LOG_LEVEL, trace_to_log_level


class LogLevel(IntEnum):
    """Log level enumeration."""
    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3
    CRITICAL = 4


class SimulationLogger:
    """
    Logger for protocol and channel events.

    Attributes:
        name: Logger name
        level: Minimum log level
        file: Trace file, if one was requested
        message_counts: Emitted messages per level
    """

    COLORS = {
        LogLevel.DEBUG: '\033[36m',
        LogLevel.INFO: '\033[32m',
        LogLevel.WARNING: '\033[33m',
        LogLevel.ERROR: '\033[31m',
        LogLevel.CRITICAL: '\033[35m',
    }
    RESET = '\033[0m'

    def __init__(
        self,
        name: str = "Simulator",
        level: int = DEFAULT_LOG_LEVEL,
        log_file: Optional[str] = None,
        use_colors: bool = True,
        include_timestamp: bool = True
    ):
        """
        Initialize logger.

        Args:
            name: Logger name
            level: Minimum log level
            log_file: Path of a trace file to write alongside stdout
            use_colors: Use ANSI colors on stdout
            include_timestamp: Prefix lines with the simulated time
        """
        self.name = name
        self.level = level
        self.use_colors = use_colors
        self.include_timestamp = include_timestamp

        self.file: Optional[TextIO] = None
        if log_file:
            directory = os.path.dirname(log_file)
            if directory:
                os.makedirs(directory, exist_ok=True)
            self.file = open(log_file, 'w')

        self.sim_time: Optional[float] = None
        self.message_counts = {level: 0 for level in LogLevel}

    @classmethod
    def from_trace(cls, trace: int, name: str = "Simulator", **kwargs) -> 'SimulationLogger':
        """Create a logger whose level follows an emulator TRACE value."""
        return cls(name=name, level=trace_to_log_level(trace), **kwargs)

    def set_sim_time(self, time: float):
        """Set current simulation time for log messages."""
        self.sim_time = time

    def _stamp(self) -> str:
        if self.sim_time is not None:
            return f"[{self.sim_time:10.4f}]"
        return f"[{datetime.now().strftime('%H:%M:%S.%f')[:-3]}]"

    def _format_message(
        self,
        level: LogLevel,
        message: str,
        category: Optional[str],
        colored: bool
    ) -> str:
        level_str = level.name.ljust(8)
        if colored:
            level_str = f"{self.COLORS[level]}{level_str}{self.RESET}"

        parts = [self._stamp()] if self.include_timestamp else []
        parts.append(level_str)
        parts.append(f"[{self.name}]")
        if category:
            parts.append(f"[{category}]")
        parts.append(message)
        return " ".join(parts)

    def _log(self, level: LogLevel, message: str, category: Optional[str] = None):
        if level < self.level:
            return

        self.message_counts[level] += 1
        print(self._format_message(level, message, category, self.use_colors))

        if self.file:
            self.file.write(self._format_message(level, message, category, False) + '\n')
            self.file.flush()

    def debug(self, message: str, category: Optional[str] = None):
        """Log debug message."""
        self._log(LogLevel.DEBUG, message, category)

    def info(self, message: str, category: Optional[str] = None):
        """Log info message."""
        self._log(LogLevel.INFO, message, category)

    def warning(self, message: str, category: Optional[str] = None):
        """Log warning message."""
        self._log(LogLevel.WARNING, message, category)

    # Protocol events
    def packet_sent(self, entity: str, seq_num: int, ack_num: int):
        """Log packet handed to the channel."""
        self.debug(f"{entity}: sending packet seq={seq_num} ack={ack_num}", "TX")

    def packet_received(self, entity: str, seq_num: int, valid: bool):
        """Log packet arrival."""
        status = "OK" if valid else "CORRUPTED"
        self.debug(f"{entity}: packet {seq_num} received, {status}", "RX")

    def ack_sent(self, ack_num: int):
        self.debug(f"B: ACK {ack_num} sent", "ACK")

    def nak_sent(self, ack_num: int):
        self.debug(f"B: corrupted packet, NAK (ack={ack_num}) sent", "NAK")

    def ack_received(self, ack_num: int, new: bool):
        kind = "new" if new else "duplicate"
        self.debug(f"A: {kind} ACK {ack_num} received", "ACK")

    def timeout(self, outstanding: int):
        self.info(f"A: timeout with {outstanding} packet(s) outstanding", "TIMEOUT")

    def retransmit(self, seq_num: int):
        self.info(f"A: resending packet {seq_num}", "RETX")

    def window_full(self, window_size: int):
        """Log a send refused by a full window."""
        self.info(f"A: send window full ({window_size} outstanding), message rejected", "WINDOW")

    def window_update(self, first_seq: Optional[int], count: int, next_seq: int):
        self.debug(f"A: window first={first_seq}, count={count}, next={next_seq}", "WINDOW")

    def delivered(self, seq_num: int):
        """Log in-order delivery to the application."""
        self.debug(f"B: delivering packet {seq_num} to layer 5", "RX")

    def simulation_start(self, params: dict):
        param_str = ", ".join(f"{k}={v}" for k, v in params.items())
        self.info(f"Simulation started: {param_str}", "SIM")

    def simulation_end(self, metrics: dict):
        self.info(
            f"Simulation ended: delivered={metrics.get('messages_delivered', 0)}, "
            f"throughput={metrics.get('throughput', 0):.4f} msg/time",
            "SIM"
        )

    def close(self):
        """Close the trace file if open."""
        if self.file:
            self.file.close()
            self.file = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


_global_logger: Optional[SimulationLogger] = None


def get_logger() -> SimulationLogger:
    """Logger shared by entities constructed without one."""
    global _global_logger
    if _global_logger is None:
        _global_logger = SimulationLogger()
    return _global_logger
