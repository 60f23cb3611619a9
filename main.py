#!/usr/bin/env python3
"""
Selective Repeat ARQ Protocol Simulator - Main Entry Point

This is the main CLI interface for the ARQ protocol simulator.
It provides options for:
- Single simulation runs
- Loss x corruption parameter sweep
- Visualization generation

Usage:
    python main.py --single --messages 1000 --loss 0.2 --corrupt 0.2
    python main.py --sweep --runs 5
    python main.py --visualize --csv results.csv
"""

import argparse
import os
import time

import pandas as pd

from srarq.config import (
    NUM_MESSAGES, MESSAGE_INTERVAL, LOSS_PROB, CORRUPT_PROB,
    WINDOWSIZE, SEQSPACE, RTT, RNG_SEED_BASE,
    RUNS_PER_CONFIGURATION, RESULTS_CSV, PLOTS_DIR
)


def run_single_simulation(args):
    """Run a single simulation with specified parameters."""
    from srarq.arq.sender import RetransmitPolicy
    from srarq.config import trace_to_log_level
    from srarq.simulation.simulator import Simulator, SimulatorConfig
    from srarq.utils.logger import SimulationLogger

    trace = 1 if args.verbose and args.trace == 0 else args.trace

    config = SimulatorConfig(
        num_messages=args.messages,
        message_interval=args.interval,
        retry_rejected=not args.no_retry,
        loss_prob=args.loss,
        corrupt_prob=args.corrupt,
        channel_model=args.channel,
        window_size=args.window,
        seq_space=args.seqspace,
        rtt=args.rtt,
        retransmit_policy=RetransmitPolicy(args.policy),
        seed=args.seed,
        log_level=trace_to_log_level(trace)
    )

    print("=" * 60)
    print("SELECTIVE REPEAT ARQ SIMULATOR")
    print("=" * 60)
    print(f"\nConfiguration:")
    print(f"  Messages: {config.num_messages}")
    print(f"  Message interval: {config.message_interval}")
    print(f"  Loss probability: {config.loss_prob}")
    print(f"  Corruption probability: {config.corrupt_prob}")
    print(f"  Channel model: {config.channel_model}")
    print(f"  Window size: {config.window_size}")
    print(f"  Sequence space: {config.seq_space}")
    print(f"  Timeout: {config.rtt}")
    print(f"  Retransmit policy: {config.retransmit_policy.value}")
    print(f"  Retry rejected messages: {config.retry_rejected}")
    print(f"  Seed: {config.seed}")

    print("\nRunning simulation...")

    with SimulationLogger.from_trace(trace, name="Sim", log_file=args.log_file) as logger:
        sim = Simulator(config, logger=logger)
        start_time = time.time()
        results = sim.run()
        elapsed = time.time() - start_time
    if args.log_file:
        print(f"Trace written to: {args.log_file}")

    print("\n" + "=" * 60)
    print("RESULTS")
    print("=" * 60)

    print(f"\nTransfer Status:")
    print(f"  Complete: {results['complete']}")
    print(f"  Data Valid: {results['verification']['valid']}")
    print(f"  Simulation Time: {results['simulation_time']:.2f}")
    print(f"  Real Time: {elapsed:.2f} s")

    metrics = results['metrics']
    print(f"\nPerformance Metrics:")
    print(f"  Throughput: {metrics['throughput']:.4f} messages/time unit")
    print(f"  Goodput: {metrics['goodput']:.2f} B/time unit")
    print(f"  Efficiency: {metrics['efficiency'] * 100:.2f}%")
    print(f"  Retransmission rate: {metrics['retransmission_rate']:.4f}")

    print(f"\nEntity A:")
    print(f"  Messages accepted: {metrics['messages_accepted']}")
    print(f"  Window full: {metrics['window_full']}")
    print(f"  Messages dropped: {metrics['messages_dropped']}")
    print(f"  ACKs received: {metrics['total_acks_received']} "
          f"(new: {metrics['new_acks']}, corrupted: {metrics['corrupted_acks']})")
    print(f"  Timeouts: {metrics['timeouts']}")
    print(f"  Packets resent: {metrics['packets_resent']}")

    print(f"\nEntity B:")
    print(f"  Packets received: {metrics['packets_received']}")
    print(f"  Corrupted: {metrics['corrupted_packets']}")
    print(f"  Duplicates: {metrics['duplicate_packets']}")
    print(f"  Out of order: {metrics['out_of_order_packets']}")
    print(f"  Delivered: {metrics['packets_delivered']}")

    print(f"\nChannel:")
    print(f"  Data packets: {metrics['data_packets_sent']} sent, "
          f"{metrics['data_packets_lost']} lost, {metrics['data_packets_corrupted']} corrupted")
    print(f"  ACK packets: {metrics['ack_packets_sent']} sent, "
          f"{metrics['ack_packets_lost']} lost, {metrics['ack_packets_corrupted']} corrupted")

    if metrics['delay']['samples'] > 0:
        print(f"\nDelivery Delay:")
        print(f"  Mean: {metrics['delay']['mean']:.2f}")
        print(f"  Min: {metrics['delay']['min']:.2f}")
        print(f"  Max: {metrics['delay']['max']:.2f}")

    return results


def run_parameter_sweep(args):
    """Run loss x corruption parameter sweep."""
    from srarq.arq.sender import RetransmitPolicy
    from srarq.config import LOSS_PROBS, CORRUPT_PROBS
    from srarq.simulation.runner import BatchRunner

    print("=" * 60)
    print("PARAMETER SWEEP")
    print("=" * 60)

    if args.quick:
        loss_probs = [0.0, 0.2, 0.4]
        corrupt_probs = [0.0, 0.2, 0.4]
        runs = 2
        num_messages = 100
    else:
        loss_probs = LOSS_PROBS
        corrupt_probs = CORRUPT_PROBS
        runs = args.runs
        num_messages = args.messages

    output_file = args.output or RESULTS_CSV

    runner = BatchRunner(
        loss_probs=loss_probs,
        corrupt_probs=corrupt_probs,
        runs_per_config=runs,
        num_messages=num_messages,
        message_interval=args.interval,
        channel_model=args.channel,
        retransmit_policy=RetransmitPolicy(args.policy),
        output_file=output_file
    )

    print(f"\nConfiguration:")
    print(f"  Loss probabilities: {loss_probs}")
    print(f"  Corruption probabilities: {corrupt_probs}")
    print(f"  Runs per config: {runs}")
    print(f"  Total simulations: {runner.total_runs}")
    print(f"  Messages per run: {num_messages}")
    print(f"  Output: {output_file}")

    print("\nStarting parameter sweep...")

    if args.parallel:
        results = runner.run_parallel(max_workers=args.workers)
    else:
        results = runner.run_sequential()

    saved = runner.save_results()

    print("\n" + "=" * 60)
    print("AGGREGATED RESULTS")
    print("=" * 60)
    print(runner.get_aggregated_results().to_string(index=False))

    invalid = results[~results['data_valid']] if not results.empty else results
    if not invalid.empty:
        print(f"\nWARNING: {len(invalid)} runs failed delivery verification")
    if saved:
        print(f"\nResults saved to: {saved}")

    return results


def generate_visualizations(args):
    """Generate visualization plots."""
    from srarq.visualization.heatmap import ThroughputHeatmap

    print("=" * 60)
    print("GENERATING VISUALIZATIONS")
    print("=" * 60)

    csv_file = args.csv or RESULTS_CSV

    if not os.path.exists(csv_file):
        print(f"Error: Results file not found: {csv_file}")
        print("Run a parameter sweep first: python main.py --sweep")
        return

    results = pd.read_csv(csv_file)
    print(f"Loaded {len(results)} results from {csv_file}")

    heatmap = ThroughputHeatmap(results=results)

    outputs = []
    for metric, title in [
        ('throughput', "Throughput vs Loss and Corruption Probability"),
        ('efficiency', "Efficiency vs Loss and Corruption Probability"),
        ('packets_resent', "Retransmissions vs Loss and Corruption Probability")
    ]:
        print(f"\nGenerating {metric} heatmap...")
        outputs.append(heatmap.plot(
            output_file=os.path.join(PLOTS_DIR, f'{metric}_heatmap.png'),
            metric=metric,
            title=title
        ))

    print("\n" + "=" * 60)
    print("VISUALIZATIONS GENERATED")
    print("=" * 60)
    for output in outputs:
        print(f"  {output}")


def show_config(args):
    """Display current configuration."""
    import srarq.config as cfg

    print("=" * 60)
    print("SIMULATOR CONFIGURATION")
    print("=" * 60)

    print(f"\nProtocol:")
    print(f"  Timeout (RTT): {cfg.RTT}")
    print(f"  Window size: {cfg.WINDOWSIZE}")
    print(f"  Sequence space: {cfg.SEQSPACE}")
    print(f"  Payload size: {cfg.PAYLOAD_SIZE} bytes")

    print(f"\nChannel Emulator:")
    print(f"  Loss probability: {cfg.LOSS_PROB}")
    print(f"  Corruption probability: {cfg.CORRUPT_PROB}")
    print(f"  One-way delay: U({cfg.MIN_CHANNEL_DELAY}, {cfg.MAX_CHANNEL_DELAY})")
    print(f"  Message interval: {cfg.MESSAGE_INTERVAL}")
    print(f"  Offered load per RTT: {cfg.calculate_offered_load():.2f}")

    print(f"\nGilbert-Elliott Channel:")
    print(f"  Good state loss/corrupt: {cfg.GOOD_STATE_LOSS} / {cfg.GOOD_STATE_CORRUPT}")
    print(f"  Bad state loss/corrupt: {cfg.BAD_STATE_LOSS} / {cfg.BAD_STATE_CORRUPT}")
    print(f"  P(Good->Bad): {cfg.P_GOOD_TO_BAD}")
    print(f"  P(Bad->Good): {cfg.P_BAD_TO_GOOD}")

    print(f"\nParameter Sweep:")
    print(f"  Loss probabilities: {cfg.LOSS_PROBS}")
    print(f"  Corruption probabilities: {cfg.CORRUPT_PROBS}")
    print(f"  Runs per config: {cfg.RUNS_PER_CONFIGURATION}")
    print(f"  Total simulations: "
          f"{len(cfg.LOSS_PROBS) * len(cfg.CORRUPT_PROBS) * cfg.RUNS_PER_CONFIGURATION}")

    print(f"\nExpected transmissions per message:")
    for loss in cfg.LOSS_PROBS:
        row = "  ".join(
            f"{cfg.calculate_expected_transmissions(loss, corrupt):6.2f}"
            for corrupt in cfg.CORRUPT_PROBS
        )
        print(f"  loss={loss:.1f}: {row}")


def main():
    parser = argparse.ArgumentParser(
        description="Selective Repeat ARQ Protocol Simulator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Single simulation:
    python main.py --single --messages 1000 --loss 0.2 --corrupt 0.2 --trace 2
    python main.py --single --trace 2 --log-file output/trace.log

  Quick parameter sweep (for testing):
    python main.py --sweep --quick

  Full parameter sweep:
    python main.py --sweep --runs 5

  Parallel parameter sweep:
    python main.py --sweep --parallel --workers 4

  Generate visualizations:
    python main.py --visualize

  Show configuration:
    python main.py --config
        """
    )

    # Mode selection
    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument('--single', action='store_true',
                      help='Run single simulation')
    mode.add_argument('--sweep', action='store_true',
                      help='Run parameter sweep')
    mode.add_argument('--visualize', action='store_true',
                      help='Generate visualizations')
    mode.add_argument('--config', action='store_true',
                      help='Show configuration')

    # Simulation options
    parser.add_argument('--messages', '-n', type=int, default=NUM_MESSAGES,
                        help=f'Number of messages to simulate (default: {NUM_MESSAGES})')
    parser.add_argument('--interval', type=float, default=MESSAGE_INTERVAL,
                        help=f'Mean time between messages (default: {MESSAGE_INTERVAL})')
    parser.add_argument('--loss', type=float, default=LOSS_PROB,
                        help=f'Packet loss probability (default: {LOSS_PROB})')
    parser.add_argument('--corrupt', type=float, default=CORRUPT_PROB,
                        help=f'Packet corruption probability (default: {CORRUPT_PROB})')
    parser.add_argument('--channel', choices=['bernoulli', 'gilbert'], default='bernoulli',
                        help='Loss/corruption model (default: bernoulli)')
    parser.add_argument('--window', '-w', type=int, default=WINDOWSIZE,
                        help=f'Window size (default: {WINDOWSIZE})')
    parser.add_argument('--seqspace', type=int, default=SEQSPACE,
                        help=f'Sequence space (default: {SEQSPACE})')
    parser.add_argument('--rtt', type=float, default=RTT,
                        help=f'Retransmission timeout (default: {RTT})')
    parser.add_argument('--policy', choices=['all-unacked', 'head-only'], default='all-unacked',
                        help='Packets resent on timeout (default: all-unacked)')
    parser.add_argument('--no-retry', action='store_true',
                        help='Drop messages refused by a full window instead of retrying')
    parser.add_argument('--seed', '-s', type=int, default=RNG_SEED_BASE,
                        help=f'Random seed (default: {RNG_SEED_BASE})')
    parser.add_argument('--trace', '-t', type=int, default=0,
                        help='Trace level: 0 quiet, 1 events, 2+ debug (default: 0)')
    parser.add_argument('--log-file', type=str, default=None,
                        help='Also write the trace to this file')

    # Parameter sweep options
    parser.add_argument('--runs', '-r', type=int,
                        default=RUNS_PER_CONFIGURATION,
                        help=f'Runs per configuration (default: {RUNS_PER_CONFIGURATION})')
    parser.add_argument('--parallel', action='store_true',
                        help='Run simulations in parallel')
    parser.add_argument('--workers', type=int, default=None,
                        help='Number of parallel workers')
    parser.add_argument('--quick', action='store_true',
                        help='Quick test with reduced parameters')

    # Output options
    parser.add_argument('--output', '-o', type=str,
                        help='Output file path')
    parser.add_argument('--csv', type=str,
                        help='CSV file for visualization')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Verbose output (same as --trace 1)')

    args = parser.parse_args()

    if args.single:
        run_single_simulation(args)
    elif args.sweep:
        run_parameter_sweep(args)
    elif args.visualize:
        generate_visualizations(args)
    elif args.config:
        show_config(args)


if __name__ == "__main__":
    main()
