"""
Application Layer for the Simulation

Produces the fixed-size messages handed to entity A and verifies what
entity B hands back up.
"""

import hashlib
from collections import deque
from typing import Deque, List, Optional, Tuple

from ..arq.packet import Message
from ..config import PAYLOAD_SIZE

INDEX_DIGITS = 6


class MessageSource:
    """
    Generator of numbered application messages.

    Message i carries its index in the first INDEX_DIGITS bytes and a letter
    cycling through a..z in the remainder, so every payload is distinct and
    the receiving side can tell which message it got.

    Rejected messages are held in a FIFO backlog when retry is enabled, so
    offering order is preserved.
    """

    def __init__(self, retry_rejected: bool = True):
        """
        Initialize message source.

        Args:
            retry_rejected: Keep refused messages and offer them again
        """
        self.retry_rejected = retry_rejected
        self.backlog: Deque[Tuple[int, Message]] = deque()
        self.generated = 0

    @staticmethod
    def make_message(index: int) -> Message:
        """Build the payload for message number index."""
        letter = bytes([ord('a') + index % 26])
        prefix = f"{index % 10 ** INDEX_DIGITS:0{INDEX_DIGITS}d}".encode()
        return Message(prefix + letter * (PAYLOAD_SIZE - INDEX_DIGITS))

    @staticmethod
    def message_index(payload: bytes) -> Optional[int]:
        """Recover the index from a payload (None if unreadable)."""
        try:
            return int(payload[:INDEX_DIGITS].decode())
        except (UnicodeDecodeError, ValueError):
            return None

    def next_message(self) -> Tuple[int, Message]:
        """Produce the next fresh message."""
        index = self.generated
        self.generated += 1
        return index, self.make_message(index)

    def defer(self, index: int, message: Message) -> bool:
        """
        Hand back a message the sender refused.

        Returns:
            True if the message will be offered again
        """
        if not self.retry_rejected:
            return False
        self.backlog.append((index, message))
        return True

    @property
    def has_backlog(self) -> bool:
        return bool(self.backlog)

    def reset(self):
        """Forget generated and deferred messages."""
        self.backlog.clear()
        self.generated = 0


class DeliveryVerifier:
    """
    Checks that B delivered each accepted message exactly once, in order.
    """

    def __init__(self):
        self.expected: List[bytes] = []
        self.delivered: List[bytes] = []

    def expect(self, message: Message):
        """Record a message accepted by A, in acceptance order."""
        self.expected.append(message.data)

    def record(self, payload: bytes):
        """Record a payload delivered by B."""
        self.delivered.append(bytes(payload))

    @property
    def outstanding(self) -> int:
        """Accepted messages not yet delivered."""
        return max(0, len(self.expected) - len(self.delivered))

    @staticmethod
    def calculate_checksum(payloads: List[bytes]) -> str:
        """Calculate MD5 checksum of a payload stream."""
        return hashlib.md5(b''.join(payloads)).hexdigest()

    def verify(self) -> Tuple[bool, dict]:
        """
        Verify delivered payloads against accepted messages.

        Returns:
            Tuple of (match, details)
        """
        expected_count = len(self.expected)
        delivered_count = len(self.delivered)

        first_mismatch = -1
        for i, (sent, got) in enumerate(zip(self.expected, self.delivered)):
            if sent != got:
                first_mismatch = i
                break
        if first_mismatch == -1 and expected_count != delivered_count:
            first_mismatch = min(expected_count, delivered_count)

        duplicates = delivered_count - len(set(self.delivered))

        expected_checksum = self.calculate_checksum(self.expected)
        delivered_checksum = self.calculate_checksum(self.delivered)

        details = {
            'expected_messages': expected_count,
            'delivered_messages': delivered_count,
            'duplicates': duplicates,
            'first_mismatch': first_mismatch,
            'expected_checksum': expected_checksum,
            'delivered_checksum': delivered_checksum,
            'checksum_match': expected_checksum == delivered_checksum
        }

        return first_mismatch == -1, details

    def reset(self):
        self.expected.clear()
        self.delivered.clear()
