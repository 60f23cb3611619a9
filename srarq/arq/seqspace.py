"""
Modular sequence-number arithmetic shared by sender and receiver.
"""


def seq_add(seq_num: int, offset: int, seq_space: int) -> int:
    """Advance a sequence number by offset, wrapping at seq_space."""
    return (seq_num + offset) % seq_space


def seq_distance(start: int, seq_num: int, seq_space: int) -> int:
    """Number of steps forward from start to seq_num (mod seq_space)."""
    return (seq_num - start) % seq_space


def in_window(seq_num: int, low: int, high: int, seq_space: int) -> bool:
    """
    Check if seq_num lies in the circular range [low, high] (mod seq_space).

    Handles wraparound, e.g. with seq_space=12 the range [10, 1] holds
    10, 11, 0 and 1. Values outside [0, seq_space) are never in range.
    """
    if not 0 <= seq_num < seq_space:
        return False
    return seq_distance(low, seq_num, seq_space) <= seq_distance(low, high, seq_space)
