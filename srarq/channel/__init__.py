"""
Channel package - Emulated network between entity A and entity B.

Contains implementations for:
- Bernoulli and Gilbert-Elliott packet loss/corruption models
- Discrete-event scheduler
- Order-preserving channel emulator
"""

from .models import (
    BernoulliChannel, ChannelOutcome, ChannelState, GilbertElliottChannel,
    analyze_burst_lengths, simulate_outcome_pattern
)
from .events import Entity, EventScheduler, EventType, SimEvent
from .emulator import ChannelEmulator

__all__ = [
    'BernoulliChannel',
    'ChannelOutcome',
    'ChannelState',
    'GilbertElliottChannel',
    'analyze_burst_lengths',
    'simulate_outcome_pattern',
    'Entity',
    'EventScheduler',
    'EventType',
    'SimEvent',
    'ChannelEmulator'
]
