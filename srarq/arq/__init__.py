"""
ARQ package - Selective Repeat ARQ protocol components.

Contains implementations for:
- Packet structure, checksum and wire encoding
- Modular sequence-number helpers
- Sender with window management and selective retransmission
- Receiver with out-of-order buffering and in-order delivery
- Retransmission timer
"""

from .packet import Message, Packet, compute_checksum, is_corrupted, make_ack_packet, make_data_packet
from .seqspace import in_window, seq_add, seq_distance
from .sender import RetransmitPolicy, SRSender
from .receiver import SRReceiver
from .timer import RetransmissionTimer, TimerState

__all__ = [
    'Message',
    'Packet',
    'compute_checksum',
    'is_corrupted',
    'make_ack_packet',
    'make_data_packet',
    'in_window',
    'seq_add',
    'seq_distance',
    'RetransmitPolicy',
    'SRSender',
    'SRReceiver',
    'RetransmissionTimer',
    'TimerState'
]
