"""
Selective Repeat ARQ Receiver

This module implements the receiver side (entity B) of the Selective Repeat
ARQ protocol: the receive window, out-of-order buffering, per-packet
acknowledgments and strictly in-order delivery to the application.
"""

from typing import Callable, List, Optional

from ..config import SEQSPACE, WINDOWSIZE, validate_window_parameters
from ..utils.buffer import ReorderBuffer
from ..utils.logger import SimulationLogger, get_logger
from .packet import Packet, make_ack_packet
from .seqspace import in_window, seq_add, seq_distance


class SRReceiver:
    """
    Selective Repeat ARQ Receiver.

    Implements the receiver side of SR-ARQ with:
    - A receive window [rcv_base, rcv_base + window_size - 1] (mod seq_space)
    - Out-of-order buffering keyed by offset from rcv_base
    - An ACK for every uncorrupted packet, in or out of the window
    - A NAK-style reply (ack = rcv_base - 1) for corrupted packets

    Attributes:
        window_size: Size of the receive window
        seq_space: Size of the sequence number space
        rcv_base: Next sequence number required for in-order delivery
        buffer: Reorder buffer for out-of-order payloads
        received: Received flag per sequence number
    """

    def __init__(
        self,
        transmit: Callable[[Packet], None],
        deliver: Callable[[bytes], None],
        window_size: int = WINDOWSIZE,
        seq_space: int = SEQSPACE,
        logger: Optional[SimulationLogger] = None
    ):
        """
        Initialize SR receiver.

        Args:
            transmit: Hands a reply packet to the channel towards A
            deliver: Passes an in-order payload to the application
            window_size: Receive window size
            seq_space: Sequence number space (>= 2 * window_size)
            logger: Logger (global logger if None)
        """
        validate_window_parameters(window_size, seq_space)

        self.transmit = transmit
        self.deliver = deliver
        self.window_size = window_size
        self.seq_space = seq_space
        self.logger = logger or get_logger()

        self.reset()

    def reset(self):
        """Reset receiver to initial state."""
        self.rcv_base = 0
        self.buffer: ReorderBuffer[bytes] = ReorderBuffer(self.window_size)
        self.received = [False] * self.seq_space

        # Statistics
        self.packets_received = 0
        self.corrupted_packets = 0
        self.duplicate_packets = 0
        self.out_of_order_packets = 0
        self.acks_sent = 0
        self.naks_sent = 0
        self.packets_delivered = 0

    def in_receive_window(self, seq_num: int) -> bool:
        """Check if a sequence number is acceptable for buffering."""
        high = seq_add(self.rcv_base, self.window_size - 1, self.seq_space)
        return in_window(seq_num, self.rcv_base, high, self.seq_space)

    def receive(self, packet: Packet) -> Packet:
        """
        Process a packet arriving from A.

        Args:
            packet: Received packet

        Returns:
            The ACK or NAK-style reply that was transmitted
        """
        if packet.is_corrupted():
            self.corrupted_packets += 1
            self.logger.packet_received("B", packet.seq_num, valid=False)
            return self._send_nak()

        self.packets_received += 1
        seq_num = packet.seq_num
        self.logger.packet_received("B", seq_num, valid=True)

        if self.in_receive_window(seq_num):
            offset = seq_distance(self.rcv_base, seq_num, self.seq_space)
            if self.received[seq_num]:
                self.duplicate_packets += 1
            elif offset != 0:
                self.out_of_order_packets += 1

            self.received[seq_num] = True
            self.buffer.store(offset, packet.payload)
            reply = self._send_ack(seq_num)
            self._deliver_in_order()
            return reply

        # Already delivered (or too far ahead): re-ACK so A can move on
        self.duplicate_packets += 1
        return self._send_ack(seq_num)

    def _deliver_in_order(self):
        """Deliver buffered payloads that are now in order."""
        while self.received[self.rcv_base]:
            payload = self.buffer.advance()
            self.received[self.rcv_base] = False
            self.logger.delivered(self.rcv_base)
            self.deliver(payload)
            self.packets_delivered += 1
            self.rcv_base = seq_add(self.rcv_base, 1, self.seq_space)

    def _send_ack(self, ack_num: int) -> Packet:
        """Build and transmit an ACK."""
        reply = make_ack_packet(ack_num)
        self.acks_sent += 1
        self.logger.ack_sent(ack_num)
        self.transmit(reply)
        return reply

    def _send_nak(self) -> Packet:
        """Build and transmit a NAK-style reply naming the last in-order packet."""
        last_in_order = seq_add(self.rcv_base, -1, self.seq_space)
        reply = make_ack_packet(last_in_order)
        self.naks_sent += 1
        self.logger.nak_sent(last_in_order)
        self.transmit(reply)
        return reply

    def get_buffered(self) -> List[int]:
        """Sequence numbers buffered but not yet delivered."""
        return [
            seq_add(self.rcv_base, offset, self.seq_space)
            for offset in range(self.window_size)
            if self.buffer.get(offset) is not None
        ]

    def get_window_state(self) -> dict:
        """Get current window state."""
        return {
            'rcv_base': self.rcv_base,
            'size': self.window_size,
            'buffered': self.get_buffered(),
            'occupied': self.buffer.occupied
        }

    def get_statistics(self) -> dict:
        """Get receiver statistics."""
        return {
            'packets_received': self.packets_received,
            'corrupted_packets': self.corrupted_packets,
            'duplicate_packets': self.duplicate_packets,
            'out_of_order_packets': self.out_of_order_packets,
            'acks_sent': self.acks_sent,
            'naks_sent': self.naks_sent,
            'packets_delivered': self.packets_delivered
        }
