"""
Packet Structure for Selective Repeat ARQ Protocol

This module defines the packet and message records exchanged between the
sender (A) and receiver (B), the additive checksum used to detect channel
corruption, and the fixed-width wire encoding.
"""

import struct
from dataclasses import dataclass
from typing import Optional, Tuple

from ..config import NOTINUSE, PAYLOAD_SIZE


def compute_checksum(seq_num: int, ack_num: int, payload: bytes) -> int:
    """
    Compute the packet checksum.

    checksum = seq + ack + sum(payload bytes)
    """
    return seq_num + ack_num + sum(payload)


@dataclass(frozen=True)
class Message:
    """
    Application layer message.

    Attributes:
        data: Fixed-size payload, opaque to the protocol
    """
    data: bytes

    def __post_init__(self):
        if len(self.data) != PAYLOAD_SIZE:
            raise ValueError(
                f"Message must be exactly {PAYLOAD_SIZE} bytes, got {len(self.data)}"
            )


@dataclass
class Packet:
    """
    Transport layer packet.

    Wire Layout (32 bytes, network byte order):
        - Sequence Number: 4 bytes (signed int)
        - ACK Number: 4 bytes (signed int)
        - Checksum: 4 bytes (signed int)
        - Payload: 20 bytes

    Header fields not in use hold NOTINUSE.

    Attributes:
        seq_num: Sequence number
        ack_num: Acknowledgment number
        checksum: Additive checksum over header and payload
        payload: Packet payload (bytes)
    """

    seq_num: int
    ack_num: int = NOTINUSE
    checksum: int = 0
    payload: bytes = bytes(PAYLOAD_SIZE)

    WIRE_FORMAT = f'!iii{PAYLOAD_SIZE}s'
    WIRE_SIZE = struct.calcsize(WIRE_FORMAT)

    def __post_init__(self):
        if len(self.payload) != PAYLOAD_SIZE:
            raise ValueError(
                f"Payload must be exactly {PAYLOAD_SIZE} bytes, got {len(self.payload)}"
            )

    def calculate_checksum(self) -> int:
        """Checksum this packet should carry."""
        return compute_checksum(self.seq_num, self.ack_num, self.payload)

    def seal(self) -> 'Packet':
        """Store the computed checksum in the packet and return it."""
        self.checksum = self.calculate_checksum()
        return self

    def is_corrupted(self) -> bool:
        """Check whether the carried checksum disagrees with the contents."""
        return self.checksum != self.calculate_checksum()

    def serialize(self) -> bytes:
        """
        Serialize the packet to its wire record.

        The checksum is written as carried, so a corrupted packet stays
        detectably corrupted after a round trip.
        """
        return struct.pack(
            self.WIRE_FORMAT,
            self.seq_num,
            self.ack_num,
            self.checksum,
            self.payload
        )

    @classmethod
    def deserialize(cls, data: bytes) -> Tuple[Optional['Packet'], bool]:
        """
        Deserialize a wire record.

        Args:
            data: Serialized packet bytes

        Returns:
            Tuple of (Packet or None, checksum valid)
        """
        if len(data) != cls.WIRE_SIZE:
            return None, False

        try:
            seq_num, ack_num, checksum, payload = struct.unpack(cls.WIRE_FORMAT, data)
        except struct.error:
            return None, False

        packet = cls(
            seq_num=seq_num,
            ack_num=ack_num,
            checksum=checksum,
            payload=payload
        )
        return packet, not packet.is_corrupted()

    def __repr__(self) -> str:
        return (f"Packet(seq={self.seq_num}, ack={self.ack_num}, "
                f"checksum={self.checksum}, payload={self.payload!r})")


def is_corrupted(packet: Packet) -> bool:
    """Check a packet against its checksum."""
    return packet.is_corrupted()


def make_data_packet(seq_num: int, payload: bytes) -> Packet:
    """
    Create a DATA packet.

    Args:
        seq_num: Sequence number
        payload: Message payload

    Returns:
        Sealed DATA packet with the ACK field unused
    """
    return Packet(seq_num=seq_num, ack_num=NOTINUSE, payload=bytes(payload)).seal()


def make_ack_packet(ack_num: int) -> Packet:
    """
    Create an ACK packet.

    Args:
        ack_num: Acknowledgment number

    Returns:
        Sealed ACK packet with the sequence field unused and a zero payload
    """
    return Packet(seq_num=NOTINUSE, ack_num=ack_num).seal()
