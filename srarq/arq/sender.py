"""
Selective Repeat ARQ Sender

This module implements the sender side (entity A) of the Selective Repeat
ARQ protocol: sliding window management, per-sequence acknowledgment
tracking and timeout-driven selective retransmission with a single timer.
"""

from enum import Enum
from typing import Callable, List, Optional

from ..config import RTT, SEQSPACE, WINDOWSIZE, validate_window_parameters
from ..utils.buffer import RingBuffer
from ..utils.logger import SimulationLogger, get_logger
from .packet import Message, Packet, make_data_packet
from .seqspace import in_window, seq_add, seq_distance
from .timer import RetransmissionTimer


class RetransmitPolicy(Enum):
    """Which outstanding packets a timeout resends."""
    ALL_UNACKED = "all-unacked"
    HEAD_ONLY = "head-only"


class SRSender:
    """
    Selective Repeat ARQ Sender.

    Implements the sender side of SR-ARQ with:
    - A circular window of at most window_size outstanding packets
    - An acknowledged flag per sequence number, valid inside the window
    - One retransmission timer, anchored to the window head
    - Selective retransmission of unacknowledged packets on timeout

    A full window rejects the message and counts it in window_full; queueing
    or retrying is left to the caller.

    Attributes:
        window_size: Maximum number of outstanding packets
        seq_space: Size of the sequence number space
        rtt: Retransmission timeout
        window: Ring of outstanding packets
        acked: Acknowledged flag per sequence number
        next_seq: Next sequence number to use
    """

    def __init__(
        self,
        transmit: Callable[[Packet], None],
        timer: RetransmissionTimer,
        window_size: int = WINDOWSIZE,
        seq_space: int = SEQSPACE,
        rtt: float = RTT,
        retransmit_policy: RetransmitPolicy = RetransmitPolicy.ALL_UNACKED,
        logger: Optional[SimulationLogger] = None
    ):
        """
        Initialize SR sender.

        Args:
            transmit: Hands a packet to the channel towards B
            timer: Retransmission timer capability
            window_size: Send window size
            seq_space: Sequence number space (>= 2 * window_size)
            rtt: Retransmission timeout
            retransmit_policy: Packets resent on timeout
            logger: Logger (global logger if None)
        """
        validate_window_parameters(window_size, seq_space)
        if rtt <= 0:
            raise ValueError("RTT must be positive")

        self.transmit = transmit
        self.timer = timer
        self.window_size = window_size
        self.seq_space = seq_space
        self.rtt = rtt
        self.retransmit_policy = retransmit_policy
        self.logger = logger or get_logger()

        self.reset()

    def reset(self):
        """Reset sender to initial state (empty window, sequence 0)."""
        self.window: RingBuffer[Packet] = RingBuffer(self.window_size)
        self.acked = [False] * self.seq_space
        self.next_seq = 0
        self.timer.reset()

        # Statistics
        self.messages_accepted = 0
        self.window_full = 0
        self.total_acks_received = 0
        self.new_acks = 0
        self.corrupted_acks = 0
        self.packets_resent = 0
        self.timeouts = 0

    @property
    def window_count(self) -> int:
        """Number of packets awaiting acknowledgment."""
        return self.window.count

    @property
    def is_window_full(self) -> bool:
        """Check if the send window is full."""
        return self.window.is_full

    def is_acked(self, seq_num: int) -> bool:
        """Check the acknowledged flag of a sequence number."""
        return self.acked[seq_num]

    def send(self, message: Message) -> bool:
        """
        Accept a message from the application and transmit it.

        Args:
            message: Application message

        Returns:
            True if the message was sent, False if the window was full
        """
        if self.window.is_full:
            self.window_full += 1
            self.logger.window_full(self.window_size)
            return False

        packet = make_data_packet(self.next_seq, message.data)
        self.window.append(packet)
        self.acked[packet.seq_num] = False
        self.messages_accepted += 1

        self.logger.packet_sent("A", packet.seq_num, packet.ack_num)
        self.transmit(packet)

        if self.window.count == 1:
            self.timer.start(self.rtt)

        self.next_seq = seq_add(self.next_seq, 1, self.seq_space)
        return True

    def on_ack(self, packet: Packet) -> bool:
        """
        Process an acknowledgment arriving from B.

        Corrupted replies, acks outside the window and repeated acks are
        ignored. A NAK-style reply is processed like any other ack: it names
        a sequence number B has already delivered.

        Args:
            packet: Received ACK packet

        Returns:
            True if the ack acknowledged a new packet
        """
        if packet.is_corrupted():
            self.corrupted_acks += 1
            self.logger.debug("A: corrupted ACK is received, do nothing", "ACK")
            return False

        self.total_acks_received += 1
        ack_num = packet.ack_num

        if self.window.is_empty:
            self.logger.ack_received(ack_num, new=False)
            return False

        first_seq = self.window.peek_first().seq_num
        last_seq = self.window.peek_last().seq_num
        if not in_window(ack_num, first_seq, last_seq, self.seq_space):
            self.logger.ack_received(ack_num, new=False)
            return False

        offset = seq_distance(first_seq, ack_num, self.seq_space)
        if self.acked[ack_num]:
            self.logger.ack_received(ack_num, new=False)
            return False

        self.acked[ack_num] = True
        self.new_acks += 1
        self.logger.ack_received(ack_num, new=True)

        if offset == 0:
            self._slide_window()

        return True

    def _slide_window(self):
        """Consume every contiguously acknowledged packet at the window head."""
        while not self.window.is_empty and self.acked[self.window.peek_first().seq_num]:
            packet = self.window.pop_first()
            self.acked[packet.seq_num] = False

        head = self.window.peek_first()
        self.logger.window_update(
            head.seq_num if head else None, self.window.count, self.next_seq
        )

        self.timer.stop()
        if not self.window.is_empty:
            self.timer.start(self.rtt)

    def on_timeout(self) -> List[Packet]:
        """
        Handle expiry of the retransmission timer.

        Returns:
            Packets that were retransmitted
        """
        self.timeouts += 1
        self.logger.timeout(self.window.count)

        resent = []
        for packet in self.window:
            if self.acked[packet.seq_num]:
                continue
            self.logger.retransmit(packet.seq_num)
            self.transmit(packet)
            resent.append(packet)
            if self.retransmit_policy == RetransmitPolicy.HEAD_ONLY:
                break

        self.packets_resent += len(resent)

        if self.timer.is_running:
            self.timer.stop()
        if not self.window.is_empty:
            self.timer.start(self.rtt)

        return resent

    def get_outstanding(self) -> List[int]:
        """Sequence numbers still awaiting acknowledgment, in window order."""
        return [p.seq_num for p in self.window if not self.acked[p.seq_num]]

    def get_window_state(self) -> dict:
        """Get current window state."""
        head = self.window.peek_first()
        tail = self.window.peek_last()
        return {
            'first_seq': head.seq_num if head else None,
            'last_seq': tail.seq_num if tail else None,
            'windowfirst': self.window.first,
            'windowlast': self.window.last,
            'windowcount': self.window.count,
            'next_seq': self.next_seq,
            'buffered': [p.seq_num for p in self.window],
            'outstanding': self.get_outstanding()
        }

    def get_statistics(self) -> dict:
        """Get sender statistics."""
        return {
            'messages_accepted': self.messages_accepted,
            'window_full': self.window_full,
            'total_acks_received': self.total_acks_received,
            'new_acks': self.new_acks,
            'corrupted_acks': self.corrupted_acks,
            'packets_resent': self.packets_resent,
            'timeouts': self.timeouts,
            **self.timer.get_statistics()
        }
