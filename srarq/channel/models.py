"""
Packet Loss / Corruption Channel Models

This module decides the fate of each packet crossing the emulated channel.
Two models are provided:
- Bernoulli: independent per-packet loss and corruption
- Gilbert-Elliott: a two-state Markov chain producing bursts, where the
  channel alternates between a "Good" state and a "Bad" state, each with its
  own loss and corruption probabilities
"""

import numpy as np
from enum import Enum
from typing import Tuple, List, Optional

from ..config import (
    LOSS_PROB, CORRUPT_PROB,
    GOOD_STATE_LOSS, GOOD_STATE_CORRUPT,
    BAD_STATE_LOSS, BAD_STATE_CORRUPT,
    P_GOOD_TO_BAD, P_BAD_TO_GOOD
)


class ChannelOutcome(Enum):
    """What happens to a packet on the channel."""
    DELIVERED = 0
    LOST = 1
    CORRUPTED = 2


class ChannelState(Enum):
    """Channel state enumeration."""
    GOOD = 0
    BAD = 1


def _check_probability(name: str, value: float):
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be in [0, 1], got {value}")


class BernoulliChannel:
    """
    Memoryless channel: each packet is lost with probability loss_prob and,
    if not lost, corrupted with probability corrupt_prob.

    Attributes:
        loss_prob: Per-packet loss probability
        corrupt_prob: Per-packet corruption probability
        rng: Random number generator
    """

    def __init__(
        self,
        loss_prob: float = LOSS_PROB,
        corrupt_prob: float = CORRUPT_PROB,
        seed: Optional[int] = None
    ):
        """
        Initialize the channel.

        Args:
            loss_prob: Probability a packet is lost
            corrupt_prob: Probability a surviving packet is corrupted
            seed: Random seed for reproducibility
        """
        _check_probability("loss_prob", loss_prob)
        _check_probability("corrupt_prob", corrupt_prob)
        self.loss_prob = loss_prob
        self.corrupt_prob = corrupt_prob
        self.rng = np.random.default_rng(seed)

        self.reset_statistics()

    def transmit(self) -> ChannelOutcome:
        """
        Decide the fate of one packet.

        Returns:
            ChannelOutcome for the packet
        """
        self.total_packets += 1
        if self.rng.random() < self.loss_prob:
            self.packets_lost += 1
            return ChannelOutcome.LOST
        if self.rng.random() < self.corrupt_prob:
            self.packets_corrupted += 1
            return ChannelOutcome.CORRUPTED
        return ChannelOutcome.DELIVERED

    def get_statistics(self) -> dict:
        """Get channel statistics."""
        return {
            'total_packets': self.total_packets,
            'packets_lost': self.packets_lost,
            'packets_corrupted': self.packets_corrupted,
            'observed_loss_rate': (self.packets_lost / self.total_packets
                                   if self.total_packets > 0 else 0),
            'observed_corrupt_rate': (self.packets_corrupted / self.total_packets
                                      if self.total_packets > 0 else 0)
        }

    def reset_statistics(self):
        """Reset all statistics counters."""
        self.total_packets = 0
        self.packets_lost = 0
        self.packets_corrupted = 0

    def reset(self, seed: Optional[int] = None):
        """Reset the channel, optionally reseeding it."""
        if seed is not None:
            self.rng = np.random.default_rng(seed)
        self.reset_statistics()


class GilbertElliottChannel:
    """
    Gilbert-Elliott two-state Markov channel model, packet level.

    The channel transitions between Good and Bad states once per packet.
    Each state has its own loss and corruption probabilities.

    Attributes:
        good_loss, good_corrupt: Probabilities in the Good state
        bad_loss, bad_corrupt: Probabilities in the Bad state
        p_gb: Transition probability from Good to Bad
        p_bg: Transition probability from Bad to Good
        state: Current channel state
        rng: Random number generator
    """

    def __init__(
        self,
        good_loss: float = GOOD_STATE_LOSS,
        good_corrupt: float = GOOD_STATE_CORRUPT,
        bad_loss: float = BAD_STATE_LOSS,
        bad_corrupt: float = BAD_STATE_CORRUPT,
        p_gb: float = P_GOOD_TO_BAD,
        p_bg: float = P_BAD_TO_GOOD,
        seed: Optional[int] = None
    ):
        """
        Initialize the Gilbert-Elliott channel.

        Args:
            good_loss: Loss probability in the Good state
            good_corrupt: Corruption probability in the Good state
            bad_loss: Loss probability in the Bad state
            bad_corrupt: Corruption probability in the Bad state
            p_gb: Probability of transitioning from Good to Bad
            p_bg: Probability of transitioning from Bad to Good
            seed: Random seed for reproducibility
        """
        for name, value in (('good_loss', good_loss), ('good_corrupt', good_corrupt),
                            ('bad_loss', bad_loss), ('bad_corrupt', bad_corrupt),
                            ('p_gb', p_gb), ('p_bg', p_bg)):
            _check_probability(name, value)
        if p_gb + p_bg == 0:
            raise ValueError("p_gb and p_bg cannot both be zero")

        self.good_loss = good_loss
        self.good_corrupt = good_corrupt
        self.bad_loss = bad_loss
        self.bad_corrupt = bad_corrupt
        self.p_gb = p_gb
        self.p_bg = p_bg

        self.rng = np.random.default_rng(seed)

        # Start in steady-state (probabilistically)
        self._initialize_state()
        self.reset_statistics()

    def _initialize_state(self):
        """Initialize channel state based on steady-state probabilities."""
        pi_good, _ = self.get_steady_state_probabilities()
        if self.rng.random() < pi_good:
            self.state = ChannelState.GOOD
        else:
            self.state = ChannelState.BAD

    def get_steady_state_probabilities(self) -> Tuple[float, float]:
        """
        Calculate steady-state probabilities for Good and Bad states.

        Returns:
            Tuple of (pi_Good, pi_Bad)
        """
        sum_transitions = self.p_gb + self.p_bg
        pi_good = self.p_bg / sum_transitions
        pi_bad = self.p_gb / sum_transitions
        return pi_good, pi_bad

    def get_average_loss(self) -> float:
        """Average loss probability in steady state."""
        pi_good, pi_bad = self.get_steady_state_probabilities()
        return pi_good * self.good_loss + pi_bad * self.bad_loss

    def get_average_corruption(self) -> float:
        """Average probability a packet arrives corrupted in steady state."""
        pi_good, pi_bad = self.get_steady_state_probabilities()
        return (pi_good * (1 - self.good_loss) * self.good_corrupt +
                pi_bad * (1 - self.bad_loss) * self.bad_corrupt)

    def transition_state(self):
        """Perform one state transition based on transition probabilities."""
        if self.state == ChannelState.GOOD:
            self.time_in_good += 1
            if self.rng.random() < self.p_gb:
                self.state = ChannelState.BAD
                self.state_transitions += 1
        else:
            self.time_in_bad += 1
            if self.rng.random() < self.p_bg:
                self.state = ChannelState.GOOD
                self.state_transitions += 1

    def transmit(self) -> ChannelOutcome:
        """
        Decide the fate of one packet, then step the Markov chain.

        Returns:
            ChannelOutcome for the packet
        """
        if self.state == ChannelState.GOOD:
            loss, corrupt = self.good_loss, self.good_corrupt
        else:
            loss, corrupt = self.bad_loss, self.bad_corrupt

        self.total_packets += 1
        if self.rng.random() < loss:
            outcome = ChannelOutcome.LOST
            self.packets_lost += 1
        elif self.rng.random() < corrupt:
            outcome = ChannelOutcome.CORRUPTED
            self.packets_corrupted += 1
        else:
            outcome = ChannelOutcome.DELIVERED

        self.transition_state()
        return outcome

    def get_statistics(self) -> dict:
        """
        Get channel statistics.

        Returns:
            Dictionary with transmission statistics
        """
        total_time = self.time_in_good + self.time_in_bad

        return {
            'total_packets': self.total_packets,
            'packets_lost': self.packets_lost,
            'packets_corrupted': self.packets_corrupted,
            'observed_loss_rate': (self.packets_lost / self.total_packets
                                   if self.total_packets > 0 else 0),
            'observed_corrupt_rate': (self.packets_corrupted / self.total_packets
                                      if self.total_packets > 0 else 0),
            'state_transitions': self.state_transitions,
            'time_in_good': self.time_in_good,
            'time_in_bad': self.time_in_bad,
            'fraction_in_good': (self.time_in_good / total_time
                                 if total_time > 0 else 0),
            'theoretical_avg_loss': self.get_average_loss(),
            'theoretical_avg_corruption': self.get_average_corruption()
        }

    def reset_statistics(self):
        """Reset all statistics counters."""
        self.total_packets = 0
        self.packets_lost = 0
        self.packets_corrupted = 0
        self.state_transitions = 0
        self.time_in_good = 0
        self.time_in_bad = 0

    def reset(self, seed: Optional[int] = None):
        """
        Reset the channel to initial state.

        Args:
            seed: New random seed (optional)
        """
        if seed is not None:
            self.rng = np.random.default_rng(seed)
        self._initialize_state()
        self.reset_statistics()


def simulate_outcome_pattern(channel, num_packets: int) -> List[bool]:
    """
    Push packets through a channel model and return the error pattern.

    Args:
        channel: BernoulliChannel or GilbertElliottChannel
        num_packets: Number of packets to simulate

    Returns:
        List of booleans (True = packet lost or corrupted)
    """
    return [channel.transmit() != ChannelOutcome.DELIVERED for _ in range(num_packets)]


def analyze_burst_lengths(error_pattern: List[bool]) -> dict:
    """
    Analyze burst lengths in an error pattern.

    Args:
        error_pattern: List of packet error indicators

    Returns:
        Dictionary with burst statistics
    """
    if not error_pattern:
        return {'avg_burst_length': 0, 'max_burst_length': 0, 'num_bursts': 0}

    bursts = []
    current_burst = 0

    for error in error_pattern:
        if error:
            current_burst += 1
        elif current_burst > 0:
            bursts.append(current_burst)
            current_burst = 0

    if current_burst > 0:
        bursts.append(current_burst)

    if bursts:
        return {
            'avg_burst_length': float(np.mean(bursts)),
            'max_burst_length': max(bursts),
            'num_bursts': len(bursts),
            'burst_lengths': bursts
        }
    return {'avg_burst_length': 0, 'max_burst_length': 0, 'num_bursts': 0}
