"""
Main Simulator - Event-Driven Network Simulation

This module implements the simulation engine that wires the application
layer, entity A, entity B and the channel emulator together and runs a
complete message transfer in simulated time.
"""

from typing import Dict, Optional
from dataclasses import dataclass, asdict
import time

import numpy as np

from ..config import (
    NUM_MESSAGES, MESSAGE_INTERVAL, LOSS_PROB, CORRUPT_PROB,
    WINDOWSIZE, SEQSPACE, RTT, RNG_SEED_BASE, MAX_SIMULATION_TIME,
    GOOD_STATE_LOSS, GOOD_STATE_CORRUPT, P_GOOD_TO_BAD, P_BAD_TO_GOOD,
    validate_window_parameters
)
from ..arq.packet import Message
from ..arq.receiver import SRReceiver
from ..arq.sender import RetransmitPolicy, SRSender
from ..arq.timer import RetransmissionTimer
from ..channel.emulator import ChannelEmulator
from ..channel.events import Entity, EventScheduler, EventType, SimEvent
from ..channel.models import BernoulliChannel, GilbertElliottChannel
from ..utils.logger import LogLevel, SimulationLogger
from ..utils.metrics import MetricsCollector
from .application import DeliveryVerifier, MessageSource

CHANNEL_MODELS = ('bernoulli', 'gilbert')


@dataclass
class SimulatorConfig:
    """Configuration for the simulator."""
    # Application
    num_messages: int = NUM_MESSAGES
    message_interval: float = MESSAGE_INTERVAL
    retry_rejected: bool = True

    # Channel
    loss_prob: float = LOSS_PROB
    corrupt_prob: float = CORRUPT_PROB
    channel_model: str = 'bernoulli'

    # Protocol
    window_size: int = WINDOWSIZE
    seq_space: int = SEQSPACE
    rtt: float = RTT
    retransmit_policy: RetransmitPolicy = RetransmitPolicy.ALL_UNACKED

    # Simulation
    seed: int = RNG_SEED_BASE
    max_time: float = MAX_SIMULATION_TIME
    log_level: int = LogLevel.WARNING

    def __post_init__(self):
        validate_window_parameters(self.window_size, self.seq_space)
        if self.num_messages < 0:
            raise ValueError("num_messages must be non-negative")
        if self.message_interval <= 0:
            raise ValueError("message_interval must be positive")
        if self.rtt <= 0:
            raise ValueError("rtt must be positive")
        if self.channel_model not in CHANNEL_MODELS:
            raise ValueError(f"channel_model must be one of {CHANNEL_MODELS}")
        for name in ('loss_prob', 'corrupt_prob'):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0, 1], got {value}")

    def build_channel_model(self, seed: Optional[int] = None):
        """
        Create the loss/corruption model.

        For the Gilbert-Elliott model, loss_prob and corrupt_prob are the
        Bad-state probabilities; the Good state uses the configured baseline.
        """
        if self.channel_model == 'gilbert':
            return GilbertElliottChannel(
                good_loss=GOOD_STATE_LOSS,
                good_corrupt=GOOD_STATE_CORRUPT,
                bad_loss=self.loss_prob,
                bad_corrupt=self.corrupt_prob,
                p_gb=P_GOOD_TO_BAD,
                p_bg=P_BAD_TO_GOOD,
                seed=seed
            )
        return BernoulliChannel(self.loss_prob, self.corrupt_prob, seed=seed)

    def to_dict(self) -> dict:
        params = asdict(self)
        params['retransmit_policy'] = self.retransmit_policy.value
        return params


class Simulator:
    """
    Main Event-Driven Simulator.

    Owns one sender, one receiver and the emulated channel between them.
    Events are processed strictly one at a time.
    """

    def __init__(self, config: SimulatorConfig, logger: Optional[SimulationLogger] = None):
        """Initialize simulator."""
        self.config = config

        self.logger = logger or SimulationLogger(name="Sim", level=config.log_level)

        self.scheduler = EventScheduler()
        self.channel = ChannelEmulator(
            self.scheduler,
            model=config.build_channel_model(config.seed + 1),
            seed=config.seed,
            logger=self.logger
        )

        self.timer = RetransmissionTimer(
            clock=lambda: self.scheduler.now,
            schedule=self._schedule_timer,
            logger=self.logger
        )

        self.sender = SRSender(
            transmit=lambda packet: self.channel.to_layer3(Entity.A, packet),
            timer=self.timer,
            window_size=config.window_size,
            seq_space=config.seq_space,
            rtt=config.rtt,
            retransmit_policy=config.retransmit_policy,
            logger=self.logger
        )

        self.receiver = SRReceiver(
            transmit=lambda packet: self.channel.to_layer3(Entity.B, packet),
            deliver=self._on_data_delivered,
            window_size=config.window_size,
            seq_space=config.seq_space,
            logger=self.logger
        )

        self.source = MessageSource(retry_rejected=config.retry_rejected)
        self.verifier = DeliveryVerifier()
        self.metrics = MetricsCollector()
        self.rng = np.random.default_rng(config.seed + 2)

        self.generated_at: Dict[int, float] = {}

    @property
    def current_time(self) -> float:
        return self.scheduler.now

    def _schedule_timer(self, expiry_time: float, generation: int):
        """Register a timer expiry with the event queue."""
        self.scheduler.schedule_at(expiry_time, EventType.TIMER_INTERRUPT, Entity.A, generation)

    def _schedule_next_message(self):
        """Schedule the next application message, if any remain."""
        if self.source.generated >= self.config.num_messages:
            return
        delay = self.config.message_interval * 2 * self.rng.random()
        self.scheduler.schedule(delay, EventType.FROM_LAYER5, Entity.A)

    def _on_data_delivered(self, payload: bytes):
        """Callback when B delivers a payload in order."""
        self.verifier.record(payload)
        index = self.source.message_index(payload)
        generated = self.generated_at.pop(index, None) if index is not None else None
        delay = self.current_time - generated if generated is not None else None
        self.metrics.record_message_delivered(delay)

    def _accepted(self, message: Message):
        self.metrics.record_message_accepted()
        self.verifier.expect(message)

    def _offer(self, index: int, message: Message):
        """Hand a fresh message to A, queueing it behind any backlog."""
        if self.source.has_backlog:
            self.source.defer(index, message)
            self._drain_backlog()
            return

        if self.sender.send(message):
            self._accepted(message)
            return

        self.metrics.record_message_rejected()
        if not self.source.defer(index, message):
            self.metrics.record_message_dropped()
            self.generated_at.pop(index, None)

    def _drain_backlog(self):
        """Offer deferred messages while A has room."""
        while self.source.has_backlog and not self.sender.is_window_full:
            _, message = self.source.backlog.popleft()
            self.sender.send(message)
            self._accepted(message)

    def _handle_event(self, event: SimEvent):
        """Dispatch one event to the entity it concerns."""
        if event.event_type == EventType.FROM_LAYER5:
            index, message = self.source.next_message()
            self.generated_at[index] = self.current_time
            self.metrics.record_message_generated()
            self._offer(index, message)
            self._schedule_next_message()

        elif event.event_type == EventType.FROM_LAYER3:
            if event.entity == Entity.A:
                self.sender.on_ack(event.data)
                self._drain_backlog()
            else:
                self.receiver.receive(event.data)

        elif event.event_type == EventType.TIMER_INTERRUPT:
            if self.timer.fire(event.data):
                self.sender.on_timeout()

    def _is_complete(self) -> bool:
        """Check if every message was generated, delivered and acknowledged."""
        return (self.source.generated >= self.config.num_messages and
                not self.source.has_backlog and
                self.verifier.outstanding == 0 and
                self.sender.window_count == 0)

    def run(self) -> Dict:
        """Run the simulation."""
        # Reset components
        self.scheduler.clear()
        self.channel.reset(self.config.seed)
        self.sender.reset()
        self.receiver.reset()
        self.source.reset()
        self.verifier.reset()
        self.metrics.reset()
        self.rng = np.random.default_rng(self.config.seed + 2)
        self.generated_at.clear()

        self.logger.set_sim_time(0.0)
        self.logger.simulation_start({
            'messages': self.config.num_messages,
            'loss': self.config.loss_prob,
            'corrupt': self.config.corrupt_prob,
            'window': self.config.window_size,
            'seqspace': self.config.seq_space
        })

        self.metrics.start(0.0)
        sim_start_real = time.time()

        self._schedule_next_message()

        while not self._is_complete():
            next_time = self.scheduler.peek_time()
            if next_time is None or next_time > self.config.max_time:
                break
            event = self.scheduler.pop()
            self.logger.set_sim_time(event.time)
            self._handle_event(event)

        self.metrics.finish(self.current_time)
        self.metrics.absorb(
            self.sender.get_statistics(),
            self.receiver.get_statistics(),
            self.channel.get_statistics()
        )
        sim_end_real = time.time()

        valid, verify_details = self.verifier.verify()
        summary = self.metrics.get_summary()
        self.logger.simulation_end(summary)

        return {
            'config': self.config.to_dict(),
            'metrics': summary,
            'verification': {'valid': valid, **verify_details},
            'real_time': sim_end_real - sim_start_real,
            'simulation_time': self.current_time,
            'complete': self._is_complete()
        }
