"""
Unit tests for the channel models, event scheduler and channel emulator.
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from srarq.config import CORRUPTED_FIELD_VALUE, PAYLOAD_SIZE
from srarq.arq.packet import make_ack_packet, make_data_packet
from srarq.channel.models import (
    BernoulliChannel, ChannelOutcome, ChannelState, GilbertElliottChannel,
    analyze_burst_lengths, simulate_outcome_pattern
)
from srarq.channel.events import Entity, EventScheduler, EventType
from srarq.channel.emulator import ChannelEmulator
from srarq.utils.logger import LogLevel, SimulationLogger


def quiet_logger():
    return SimulationLogger(name="Test", level=LogLevel.CRITICAL, use_colors=False)


def drain(scheduler):
    """Pop every pending event."""
    events = []
    while len(scheduler):
        events.append(scheduler.pop())
    return events


class TestBernoulliChannel:
    """Tests for the memoryless loss/corruption model."""

    def test_lossless(self):
        """Test a perfect channel delivers everything."""
        channel = BernoulliChannel(0.0, 0.0, seed=1)
        assert all(channel.transmit() == ChannelOutcome.DELIVERED for _ in range(500))

    def test_always_lost(self):
        """Test loss probability 1 loses everything."""
        channel = BernoulliChannel(1.0, 1.0, seed=1)
        assert all(channel.transmit() == ChannelOutcome.LOST for _ in range(100))
        assert channel.packets_corrupted == 0

    def test_always_corrupted(self):
        """Test corruption probability 1 corrupts every surviving packet."""
        channel = BernoulliChannel(0.0, 1.0, seed=1)
        assert all(channel.transmit() == ChannelOutcome.CORRUPTED for _ in range(100))

    def test_observed_rates(self):
        """Test observed loss and corruption rates match the configuration."""
        channel = BernoulliChannel(0.3, 0.2, seed=42)
        for _ in range(20000):
            channel.transmit()

        stats = channel.get_statistics()
        assert stats['total_packets'] == 20000
        assert 0.28 < stats['observed_loss_rate'] < 0.32
        # Corruption only applies to packets that were not lost
        assert 0.12 < stats['observed_corrupt_rate'] < 0.16

    def test_invalid_probability(self):
        """Test probabilities outside [0, 1] are rejected."""
        with pytest.raises(ValueError):
            BernoulliChannel(1.5, 0.0)
        with pytest.raises(ValueError):
            BernoulliChannel(0.0, -0.1)

    def test_reset(self):
        """Test reset clears statistics and reseeding reproduces outcomes."""
        channel = BernoulliChannel(0.5, 0.5, seed=7)
        first = [channel.transmit() for _ in range(50)]

        channel.reset(seed=7)
        assert channel.total_packets == 0
        assert [channel.transmit() for _ in range(50)] == first


class TestGilbertElliottChannel:
    """Tests for the Gilbert-Elliott burst model."""

    def test_initialization(self):
        """Test channel initialization with default parameters."""
        channel = GilbertElliottChannel(seed=42)

        assert channel.good_loss == 0.01
        assert channel.bad_loss == 0.5
        assert channel.p_gb == 0.05
        assert channel.p_bg == 0.3
        assert channel.state in [ChannelState.GOOD, ChannelState.BAD]

    def test_steady_state_probabilities(self):
        """Test steady-state probability calculation."""
        channel = GilbertElliottChannel()

        pi_good, pi_bad = channel.get_steady_state_probabilities()

        assert abs(pi_good + pi_bad - 1.0) < 1e-10
        assert pi_good == pytest.approx(0.3 / 0.35)
        assert pi_bad == pytest.approx(0.05 / 0.35)

    def test_average_loss(self):
        """Test average loss probability calculation."""
        channel = GilbertElliottChannel()
        expected = (0.3 * 0.01 + 0.05 * 0.5) / 0.35
        assert channel.get_average_loss() == pytest.approx(expected)

    def test_observed_loss_near_average(self):
        """Test long-run loss rate approaches the steady-state average."""
        channel = GilbertElliottChannel(seed=42)
        for _ in range(50000):
            channel.transmit()

        stats = channel.get_statistics()
        assert abs(stats['observed_loss_rate'] - channel.get_average_loss()) < 0.02
        assert 0.8 < stats['fraction_in_good'] < 0.92

    def test_observed_corruption_near_average(self):
        """Test long-run corruption rate approaches the steady-state average."""
        channel = GilbertElliottChannel(good_corrupt=0.02, bad_corrupt=0.4, seed=7)
        for _ in range(50000):
            channel.transmit()

        stats = channel.get_statistics()
        assert stats['theoretical_avg_corruption'] == pytest.approx(
            channel.get_average_corruption()
        )
        assert abs(stats['observed_corrupt_rate'] - stats['theoretical_avg_corruption']) < 0.02

    def test_state_transitions(self):
        """Test that state transitions occur."""
        channel = GilbertElliottChannel(p_gb=0.2, p_bg=0.2, seed=42)
        for _ in range(1000):
            channel.transmit()

        stats = channel.get_statistics()
        assert stats['state_transitions'] > 0
        assert stats['time_in_good'] > 0
        assert stats['time_in_bad'] > 0

    def test_bad_state_is_bursty(self):
        """Test errors cluster more than an independent channel of the same rate."""
        bursty = GilbertElliottChannel(
            good_loss=0.0, good_corrupt=0.0, bad_loss=0.9, bad_corrupt=0.0,
            p_gb=0.02, p_bg=0.2, seed=3
        )
        independent = BernoulliChannel(bursty.get_average_loss(), 0.0, seed=3)

        bursty_stats = analyze_burst_lengths(simulate_outcome_pattern(bursty, 20000))
        independent_stats = analyze_burst_lengths(simulate_outcome_pattern(independent, 20000))

        assert bursty_stats['avg_burst_length'] > independent_stats['avg_burst_length']

    def test_burst_analysis(self):
        """Test burst length analysis."""
        stats = analyze_burst_lengths([False, True, True, False, True])

        assert stats['num_bursts'] == 2
        assert stats['max_burst_length'] == 2
        assert stats['avg_burst_length'] == 1.5
        assert stats['burst_lengths'] == [2, 1]

    def test_burst_analysis_without_errors(self):
        """Test burst analysis on clean and empty patterns."""
        assert analyze_burst_lengths([])['num_bursts'] == 0
        assert analyze_burst_lengths([False] * 10)['num_bursts'] == 0

    def test_reset(self):
        """Test channel reset."""
        channel = GilbertElliottChannel(seed=42)
        for _ in range(100):
            channel.transmit()

        channel.reset()

        stats = channel.get_statistics()
        assert stats['total_packets'] == 0
        assert stats['state_transitions'] == 0

    def test_reproducibility(self):
        """Test that same seed produces same results."""
        channel1 = GilbertElliottChannel(seed=123)
        channel2 = GilbertElliottChannel(seed=123)

        pattern1 = simulate_outcome_pattern(channel1, 1000)
        pattern2 = simulate_outcome_pattern(channel2, 1000)

        assert pattern1 == pattern2

    def test_invalid_parameters(self):
        """Test invalid probabilities are rejected."""
        with pytest.raises(ValueError):
            GilbertElliottChannel(bad_loss=2.0)
        with pytest.raises(ValueError):
            GilbertElliottChannel(p_gb=0.0, p_bg=0.0)


class TestEventScheduler:
    """Tests for the discrete-event scheduler."""

    def test_time_order(self):
        """Test events come out in time order and advance the clock."""
        scheduler = EventScheduler()
        scheduler.schedule_at(5.0, EventType.FROM_LAYER5, Entity.A, "late")
        scheduler.schedule_at(2.0, EventType.FROM_LAYER5, Entity.A, "early")

        event = scheduler.pop()
        assert event.data == "early"
        assert scheduler.now == 2.0
        assert scheduler.peek_time() == 5.0

    def test_ties_keep_insertion_order(self):
        """Test events at the same time are processed first-in first-out."""
        scheduler = EventScheduler()
        for i in range(5):
            scheduler.schedule_at(3.0, EventType.FROM_LAYER3, Entity.B, i)

        assert [e.data for e in drain(scheduler)] == [0, 1, 2, 3, 4]

    def test_relative_schedule(self):
        """Test delays are measured from the current time."""
        scheduler = EventScheduler()
        scheduler.schedule_at(4.0, EventType.FROM_LAYER5, Entity.A)
        scheduler.pop()
        event = scheduler.schedule(1.5, EventType.TIMER_INTERRUPT, Entity.A)
        assert event.time == 5.5

    def test_past_rejected(self):
        """Test events cannot be scheduled before the current time."""
        scheduler = EventScheduler()
        scheduler.schedule_at(4.0, EventType.FROM_LAYER5, Entity.A)
        scheduler.pop()
        with pytest.raises(ValueError):
            scheduler.schedule_at(3.0, EventType.FROM_LAYER5, Entity.A)

    def test_clear(self):
        """Test clear drops events and rewinds the clock."""
        scheduler = EventScheduler()
        scheduler.schedule_at(4.0, EventType.FROM_LAYER5, Entity.A)
        scheduler.pop()
        scheduler.schedule_at(6.0, EventType.FROM_LAYER5, Entity.A)
        scheduler.clear()

        assert len(scheduler) == 0
        assert scheduler.now == 0.0
        assert scheduler.pop() is None

    def test_entity_peer(self):
        """Test each entity's peer is the other one."""
        assert Entity.A.peer is Entity.B
        assert Entity.B.peer is Entity.A


class TestChannelEmulator:
    """Tests for the order-preserving channel emulator."""

    def make_emulator(self, loss=0.0, corrupt=0.0, seed=11):
        scheduler = EventScheduler()
        emulator = ChannelEmulator(
            scheduler,
            model=BernoulliChannel(loss, corrupt, seed=seed + 1),
            seed=seed,
            logger=quiet_logger()
        )
        return scheduler, emulator

    def test_order_preserved(self):
        """Test packets in one direction arrive in the order they were sent."""
        scheduler, emulator = self.make_emulator()
        packets = [make_data_packet(i % 12, bytes([65 + i % 26]) * PAYLOAD_SIZE)
                   for i in range(50)]
        for packet in packets:
            emulator.to_layer3(Entity.A, packet)

        events = drain(scheduler)

        assert [e.data for e in events] == packets
        assert all(e.entity == Entity.B for e in events)
        assert all(e.event_type == EventType.FROM_LAYER3 for e in events)

        times = [e.time for e in events]
        assert times == sorted(times)
        assert all(1.0 <= t <= 10.0 for t in times)

    def test_delay_not_queued(self):
        """Test a burst of packets does not stretch later delays."""
        scheduler, emulator = self.make_emulator()
        for i in range(30):
            emulator.to_layer3(Entity.A, make_data_packet(i % 12, b"a" * PAYLOAD_SIZE))
        events = drain(scheduler)
        assert events[-1].time <= 10.0

        sent_at = scheduler.now
        emulator.to_layer3(Entity.A, make_data_packet(0, b"a" * PAYLOAD_SIZE))
        event = scheduler.pop()
        assert 1.0 <= event.time - sent_at <= 10.0

    def test_carries_copies(self):
        """Test the sender's packet object is never handed over or modified."""
        scheduler, emulator = self.make_emulator(corrupt=1.0)
        packet = make_data_packet(3, b"a" * PAYLOAD_SIZE)
        original = make_data_packet(3, b"a" * PAYLOAD_SIZE)

        emulator.to_layer3(Entity.A, packet)
        carried = scheduler.pop().data

        assert carried is not packet
        assert packet == original
        assert not packet.is_corrupted()

    def test_corruption_always_detectable(self):
        """Test every corrupted packet fails its checksum."""
        scheduler, emulator = self.make_emulator(corrupt=1.0)
        for i in range(300):
            emulator.to_layer3(Entity.A, make_data_packet(i % 12, b"Z" * PAYLOAD_SIZE))
            emulator.to_layer3(Entity.B, make_ack_packet(i % 12))

        events = drain(scheduler)

        assert len(events) == 600
        assert all(e.data.is_corrupted() for e in events)
        stats = emulator.get_statistics()
        assert stats['data_packets_corrupted'] == 300
        assert stats['ack_packets_corrupted'] == 300

    def test_corruption_mix(self):
        """Test most corruption hits the payload, the rest a header field."""
        scheduler, emulator = self.make_emulator(corrupt=1.0)
        for i in range(4000):
            emulator.to_layer3(Entity.A, make_data_packet(i % 12, b"a" * PAYLOAD_SIZE))

        events = drain(scheduler)
        payload_hits = sum(1 for e in events if e.data.payload[0:1] == b"Z")
        seq_hits = sum(1 for e in events if e.data.seq_num == CORRUPTED_FIELD_VALUE)
        ack_hits = sum(1 for e in events if e.data.ack_num == CORRUPTED_FIELD_VALUE)

        assert payload_hits + seq_hits + ack_hits == 4000
        assert 0.72 < payload_hits / 4000 < 0.78
        assert 0.10 < seq_hits / 4000 < 0.15
        assert 0.10 < ack_hits / 4000 < 0.15

    def test_loss(self):
        """Test lost packets never arrive."""
        scheduler, emulator = self.make_emulator(loss=1.0)
        for i in range(20):
            emulator.to_layer3(Entity.A, make_data_packet(i % 12, b"a" * PAYLOAD_SIZE))

        assert len(scheduler) == 0
        stats = emulator.get_statistics()
        assert stats['data_packets_sent'] == 20
        assert stats['data_packets_lost'] == 20

    def test_directions_independent(self):
        """Test each direction keeps its own queue and counters."""
        scheduler, emulator = self.make_emulator()
        emulator.to_layer3(Entity.A, make_data_packet(0, b"a" * PAYLOAD_SIZE))
        emulator.to_layer3(Entity.B, make_ack_packet(0))

        events = drain(scheduler)
        assert sorted(e.entity.name for e in events) == ["A", "B"]

        stats = emulator.get_statistics()
        assert stats['data_packets_sent'] == 1
        assert stats['ack_packets_sent'] == 1

    def test_reset_reproducible(self):
        """Test resetting with a seed replays the same arrival times."""
        scheduler, emulator = self.make_emulator(loss=0.3, corrupt=0.3)

        def run():
            for i in range(40):
                emulator.to_layer3(Entity.A, make_data_packet(i % 12, b"a" * PAYLOAD_SIZE))
            return [(e.time, e.data.is_corrupted()) for e in drain(scheduler)]

        emulator.reset(11)
        first = run()
        scheduler.clear()
        emulator.reset(11)
        second = run()

        assert first == second
        assert emulator.get_statistics()['data_packets_sent'] == 40

    def test_invalid_delays(self):
        """Test delay bounds are validated."""
        with pytest.raises(ValueError):
            ChannelEmulator(EventScheduler(), min_delay=5.0, max_delay=1.0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
