"""
Channel Emulator

Carries packets between entity A and entity B through a loss/corruption
model, with random delay that never reorders packets travelling in the same
direction.
"""

import dataclasses
from typing import Optional

import numpy as np

from ..arq.packet import Packet
from ..config import CORRUPTED_FIELD_VALUE, MAX_CHANNEL_DELAY, MIN_CHANNEL_DELAY
from ..utils.logger import SimulationLogger, get_logger
from .events import Entity, EventScheduler, EventType
from .models import BernoulliChannel, ChannelOutcome


class ChannelEmulator:
    """
    Unidirectional-order-preserving packet channel.

    Each packet gets an independent uniform delay, but never arrives before a
    packet sent earlier towards the same entity.

    Attributes:
        scheduler: Event scheduler delivering FROM_LAYER3 events
        model: Loss/corruption model
        rng: Random number generator for delays and corruption placement
    """

    def __init__(
        self,
        scheduler: EventScheduler,
        model=None,
        seed: Optional[int] = None,
        min_delay: float = MIN_CHANNEL_DELAY,
        max_delay: float = MAX_CHANNEL_DELAY,
        logger: Optional[SimulationLogger] = None
    ):
        """
        Initialize the emulator.

        Args:
            scheduler: Event scheduler
            model: Channel model (lossless BernoulliChannel if None)
            seed: Random seed for delays and corruption placement
            min_delay: Minimum one-way delay
            max_delay: Maximum one-way delay
            logger: Logger (global logger if None)
        """
        if not 0 < min_delay <= max_delay:
            raise ValueError("Channel delays must satisfy 0 < min_delay <= max_delay")

        self.scheduler = scheduler
        self.model = model or BernoulliChannel(0.0, 0.0, seed=None if seed is None else seed + 1)
        self.rng = np.random.default_rng(seed)
        self.min_delay = min_delay
        self.max_delay = max_delay
        self.logger = logger or get_logger()

        self.last_arrival = {Entity.A: 0.0, Entity.B: 0.0}
        self.reset_statistics()

    def reset_statistics(self):
        """Reset per-direction counters."""
        self.packets_sent = {Entity.A: 0, Entity.B: 0}
        self.packets_lost = {Entity.A: 0, Entity.B: 0}
        self.packets_corrupted = {Entity.A: 0, Entity.B: 0}

    def to_layer3(self, source: Entity, packet: Packet):
        """
        Send a packet from source towards its peer.

        The channel works on a copy so the sender's buffered packet is never
        modified.

        Args:
            source: Sending entity
            packet: Packet to carry
        """
        self.packets_sent[source] += 1
        outcome = self.model.transmit()

        if outcome == ChannelOutcome.LOST:
            self.packets_lost[source] += 1
            self.logger.debug(f"{source.name}: packet seq={packet.seq_num} "
                              f"ack={packet.ack_num} lost", "CHANNEL")
            return

        carried = dataclasses.replace(packet)
        if outcome == ChannelOutcome.CORRUPTED:
            self.packets_corrupted[source] += 1
            carried = self._corrupt(carried)
            self.logger.debug(f"{source.name}: packet being corrupted", "CHANNEL")

        destination = source.peer
        delay = self.rng.uniform(self.min_delay, self.max_delay)
        arrival = max(self.scheduler.now + delay, self.last_arrival[destination])
        self.last_arrival[destination] = arrival

        self.scheduler.schedule_at(arrival, EventType.FROM_LAYER3, destination, carried)

    def _corrupt(self, packet: Packet) -> Packet:
        """Damage the payload (75%), the sequence (12.5%) or the ack field."""
        x = self.rng.random()
        if x < 0.75:
            payload = b'Z' + packet.payload[1:]
            if payload == packet.payload:
                payload = b'Y' + packet.payload[1:]
            return dataclasses.replace(packet, payload=payload)
        if x < 0.875:
            return dataclasses.replace(packet, seq_num=CORRUPTED_FIELD_VALUE)
        return dataclasses.replace(packet, ack_num=CORRUPTED_FIELD_VALUE)

    def get_statistics(self) -> dict:
        """Get per-direction channel statistics."""
        return {
            'data_packets_sent': self.packets_sent[Entity.A],
            'data_packets_lost': self.packets_lost[Entity.A],
            'data_packets_corrupted': self.packets_corrupted[Entity.A],
            'ack_packets_sent': self.packets_sent[Entity.B],
            'ack_packets_lost': self.packets_lost[Entity.B],
            'ack_packets_corrupted': self.packets_corrupted[Entity.B]
        }

    def reset(self, seed: Optional[int] = None):
        """Reset delays, counters and the channel model."""
        if seed is not None:
            self.rng = np.random.default_rng(seed)
        self.model.reset(None if seed is None else seed + 1)
        self.last_arrival = {Entity.A: 0.0, Entity.B: 0.0}
        self.reset_statistics()
