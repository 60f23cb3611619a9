"""
Timer Management for Selective Repeat ARQ

This module provides the sender's single retransmission timer. The timer is
a capability handed to the sender: it reads simulated time from a clock and
registers its expiry with a scheduler, so tests and the simulator can both
drive it deterministically.
"""

from enum import Enum
from typing import Callable, Optional

from ..utils.logger import SimulationLogger, get_logger


class TimerState(Enum):
    """Timer state enumeration."""
    STOPPED = 0
    RUNNING = 1
    EXPIRED = 2


class RetransmissionTimer:
    """
    Single-shot, restartable alarm.

    Every start bumps a generation counter. The scheduler is told the expiry
    time and the generation; when the event comes due it calls fire() with
    that generation, and events belonging to a stopped or restarted timer are
    ignored.

    Attributes:
        state: Current timer state
        start_time: Time when the timer was last started
        timeout: Duration of the current run
        generation: Incremented on each start
    """

    def __init__(
        self,
        clock: Optional[Callable[[], float]] = None,
        schedule: Optional[Callable[[float, int], None]] = None,
        logger: Optional[SimulationLogger] = None
    ):
        """
        Initialize timer.

        Args:
            clock: Returns current simulated time (defaults to a fixed 0.0)
            schedule: Called with (expiry_time, generation) on every start
            logger: Logger for misuse warnings
        """
        self.clock = clock or (lambda: 0.0)
        self.schedule = schedule
        self.logger = logger or get_logger()

        self.state = TimerState.STOPPED
        self.start_time = 0.0
        self.timeout = 0.0
        self.generation = 0

        # Statistics
        self.starts = 0
        self.stops = 0
        self.expirations = 0

    @property
    def is_running(self) -> bool:
        """Check if the timer is running."""
        return self.state == TimerState.RUNNING

    def start(self, duration: float):
        """
        Start the timer.

        Starting a running timer is a caller error; it is reported and the
        running timer is left untouched.

        Args:
            duration: Time until expiry
        """
        if duration < 0:
            raise ValueError("Timer duration must be non-negative")
        if self.is_running:
            self.logger.warning("attempt to start a timer that is already started", "TIMER")
            return

        self.start_time = self.clock()
        self.timeout = duration
        self.state = TimerState.RUNNING
        self.generation += 1
        self.starts += 1

        if self.schedule:
            self.schedule(self.get_expiry_time(), self.generation)

    def stop(self):
        """Stop the timer."""
        if not self.is_running:
            self.logger.warning("unable to cancel a timer that is not running", "TIMER")
            return
        self.state = TimerState.STOPPED
        self.stops += 1

    def fire(self, generation: int) -> bool:
        """
        Deliver a scheduled expiry.

        Args:
            generation: Generation the expiry was scheduled for

        Returns:
            True if this expiry belongs to the current run
        """
        if not self.is_running or generation != self.generation:
            return False
        self.state = TimerState.EXPIRED
        self.expirations += 1
        return True

    def get_expiry_time(self) -> float:
        """Get the absolute expiry time."""
        return self.start_time + self.timeout

    def get_remaining_time(self) -> float:
        """
        Get remaining time until expiration.

        Returns:
            Remaining time (0 if expired or stopped)
        """
        if not self.is_running:
            return 0.0
        return max(0.0, self.get_expiry_time() - self.clock())

    def reset(self):
        """Return to the stopped state, invalidating pending expiries."""
        self.state = TimerState.STOPPED
        self.generation += 1
        self.starts = 0
        self.stops = 0
        self.expirations = 0

    def get_statistics(self) -> dict:
        """Get timer statistics."""
        return {
            'timer_starts': self.starts,
            'timer_stops': self.stops,
            'timer_expirations': self.expirations
        }
