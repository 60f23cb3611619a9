"""
Selective Repeat ARQ simulator.

Two entities, A (sender) and B (receiver), exchange fixed-size messages
over an emulated channel that can lose and corrupt packets.
"""

__version__ = "0.1.0"
