"""
Configuration file for the Selective Repeat ARQ Protocol Simulator.
Contains the protocol tunables and the channel emulator baseline parameters.
"""

import os

# =============================================================================
# PROTOCOL PARAMETERS
# =============================================================================

# Retransmission timeout (simulated time units)
RTT = 16.0

# Maximum number of buffered unacknowledged packets
WINDOWSIZE = 6

# Sequence space; must be at least 2 * WINDOWSIZE for selective repeat
SEQSPACE = 12

# Fills header fields that are not in use
NOTINUSE = -1

# Fixed application payload size (bytes)
PAYLOAD_SIZE = 20

# =============================================================================
# CHANNEL EMULATOR PARAMETERS
# =============================================================================

# Independent per-packet loss / corruption probabilities
LOSS_PROB = 0.0
CORRUPT_PROB = 0.0

# Mean time between messages handed down by the application layer
MESSAGE_INTERVAL = 10.0

# Number of application messages per simulation
NUM_MESSAGES = 1000

# One-way channel delay is uniform in [MIN, MAX] on top of the queue
MIN_CHANNEL_DELAY = 1.0
MAX_CHANNEL_DELAY = 10.0

# Value written over a header field when the channel corrupts it
CORRUPTED_FIELD_VALUE = 999999

# =============================================================================
# GILBERT-ELLIOTT BURST CHANNEL PARAMETERS (packet level)
# =============================================================================

GOOD_STATE_LOSS = 0.01
GOOD_STATE_CORRUPT = 0.01
BAD_STATE_LOSS = 0.5
BAD_STATE_CORRUPT = 0.3

P_GOOD_TO_BAD = 0.05    # P(G -> B) per packet
P_BAD_TO_GOOD = 0.3     # P(B -> G) per packet

# =============================================================================
# PARAMETER SWEEP CONFIGURATION
# =============================================================================

LOSS_PROBS = [0.0, 0.1, 0.2, 0.3, 0.4]
CORRUPT_PROBS = [0.0, 0.1, 0.2, 0.3, 0.4]

RUNS_PER_CONFIGURATION = 5

# =============================================================================
# SIMULATION SETTINGS
# =============================================================================

# Default RNG seed base (actual seed = base + offset)
RNG_SEED_BASE = 42

# Simulated time limit - failsafe
MAX_SIMULATION_TIME = 1_000_000.0

# Logging verbosity levels
LOG_LEVEL_DEBUG = 0
LOG_LEVEL_INFO = 1
LOG_LEVEL_WARNING = 2
LOG_LEVEL_ERROR = 3

DEFAULT_LOG_LEVEL = LOG_LEVEL_WARNING

# =============================================================================
# OUTPUT PATHS
# =============================================================================

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DATA_DIR = os.path.join(BASE_DIR, "data")
OUTPUT_DIR = os.path.join(DATA_DIR, "output")
PLOTS_DIR = os.path.join(OUTPUT_DIR, "plots")

RESULTS_CSV = os.path.join(OUTPUT_DIR, "results.csv")

# =============================================================================
# DERIVED PARAMETERS / HELPERS
# =============================================================================

def validate_window_parameters(window_size, seq_space):
    """
    Check that a window size and sequence space can be used together.

    Sender and receiver windows can only alias when the sequence space is
    smaller than twice the window.

    Raises:
        ValueError: if the combination is unusable
    """
    if window_size < 1:
        raise ValueError(f"Window size must be positive, got {window_size}")
    if seq_space < 2 * window_size:
        raise ValueError(
            f"Sequence space {seq_space} must be at least 2 * window size "
            f"({2 * window_size})"
        )


def trace_to_log_level(trace):
    """Map an emulator TRACE value (0, 1, 2, ...) onto a logger level."""
    if trace <= 0:
        return LOG_LEVEL_WARNING
    if trace == 1:
        return LOG_LEVEL_INFO
    return LOG_LEVEL_DEBUG


def calculate_offered_load(message_interval=MESSAGE_INTERVAL, rtt=RTT):
    """Average number of messages offered by the application per RTT."""
    return rtt / message_interval


def calculate_expected_transmissions(loss_prob=LOSS_PROB, corrupt_prob=CORRUPT_PROB):
    """
    Expected transmissions per packet until one data packet and its
    acknowledgment both get through.

    p_ok = ((1 - loss) * (1 - corrupt)) ** 2 for the round trip
    E[tx] = 1 / p_ok
    """
    one_way = (1 - loss_prob) * (1 - corrupt_prob)
    p_ok = one_way * one_way
    if p_ok <= 0:
        return float('inf')
    return 1 / p_ok


# Print configuration summary
if __name__ == "__main__":
    print("=" * 60)
    print("SELECTIVE REPEAT ARQ SIMULATOR - CONFIGURATION")
    print("=" * 60)
    print(f"\nProtocol:")
    print(f"  RTT (timeout): {RTT}")
    print(f"  Window size: {WINDOWSIZE}")
    print(f"  Sequence space: {SEQSPACE}")
    print(f"  Payload size: {PAYLOAD_SIZE} bytes")

    print(f"\nChannel:")
    print(f"  Loss probability: {LOSS_PROB}")
    print(f"  Corruption probability: {CORRUPT_PROB}")
    print(f"  Delay: U({MIN_CHANNEL_DELAY}, {MAX_CHANNEL_DELAY})")
    print(f"  Message interval: {MESSAGE_INTERVAL}")
    print(f"  Offered load per RTT: {calculate_offered_load():.2f}")
