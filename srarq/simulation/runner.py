"""
Batch Runner for Parameter Sweep Simulations

This module runs the simulator over a loss x corruption grid with several
seeded runs per grid point and collects the results in a DataFrame.
"""

import os
import time
from typing import Optional, Callable, List, Dict
from dataclasses import dataclass
from concurrent.futures import ProcessPoolExecutor, as_completed
import multiprocessing

import pandas as pd
from tqdm import tqdm

from ..config import (
    LOSS_PROBS, CORRUPT_PROBS, RUNS_PER_CONFIGURATION,
    RNG_SEED_BASE, RESULTS_CSV, NUM_MESSAGES, MESSAGE_INTERVAL
)
from ..arq.sender import RetransmitPolicy
from ..utils.logger import LogLevel
from .simulator import Simulator, SimulatorConfig


@dataclass
class RunConfig:
    """Configuration for a single simulation run."""
    loss_prob: float
    corrupt_prob: float
    run_id: int
    seed: int
    num_messages: int
    message_interval: float
    channel_model: str = 'bernoulli'
    retransmit_policy: RetransmitPolicy = RetransmitPolicy.ALL_UNACKED


def run_single_simulation(run_config: RunConfig) -> Dict:
    """
    Run a single simulation with given configuration.

    This function is designed to be called in a separate process.

    Args:
        run_config: Configuration for this run

    Returns:
        Dictionary with results
    """
    config = SimulatorConfig(
        num_messages=run_config.num_messages,
        message_interval=run_config.message_interval,
        loss_prob=run_config.loss_prob,
        corrupt_prob=run_config.corrupt_prob,
        channel_model=run_config.channel_model,
        retransmit_policy=run_config.retransmit_policy,
        seed=run_config.seed,
        log_level=LogLevel.ERROR  # Minimal logging for batch runs
    )

    results = Simulator(config).run()
    metrics = results['metrics']

    return {
        'loss_prob': run_config.loss_prob,
        'corrupt_prob': run_config.corrupt_prob,
        'run_id': run_config.run_id,
        'seed': run_config.seed,
        'channel_model': run_config.channel_model,
        'retransmit_policy': run_config.retransmit_policy.value,
        'throughput': metrics['throughput'],
        'goodput': metrics['goodput'],
        'efficiency': metrics['efficiency'],
        'retransmission_rate': metrics['retransmission_rate'],
        'packets_resent': metrics['packets_resent'],
        'timeouts': metrics['timeouts'],
        'window_full': metrics['window_full'],
        'messages_delivered': metrics['messages_delivered'],
        'delay_mean': metrics['delay']['mean'],
        'delay_max': metrics['delay']['max'],
        'total_time': results['simulation_time'],
        'data_valid': results['verification']['valid'],
        'complete': results['complete']
    }


class BatchRunner:
    """
    Batch Runner for parameter sweep simulations.

    Executes all (loss, corruption) combinations with multiple runs each.

    Attributes:
        loss_probs: Loss probabilities to test
        corrupt_probs: Corruption probabilities to test
        runs_per_config: Number of runs per grid point
        num_messages: Messages per run
    """

    def __init__(
        self,
        loss_probs: Optional[List[float]] = None,
        corrupt_probs: Optional[List[float]] = None,
        runs_per_config: int = RUNS_PER_CONFIGURATION,
        num_messages: int = NUM_MESSAGES,
        message_interval: float = MESSAGE_INTERVAL,
        channel_model: str = 'bernoulli',
        retransmit_policy: RetransmitPolicy = RetransmitPolicy.ALL_UNACKED,
        output_file: str = RESULTS_CSV,
        on_progress: Optional[Callable[[int, int, dict], None]] = None,
        show_progress: bool = True
    ):
        """
        Initialize batch runner.

        Args:
            loss_probs: Loss probabilities (default from config)
            corrupt_probs: Corruption probabilities (default from config)
            runs_per_config: Number of runs per grid point
            num_messages: Messages per run
            message_interval: Mean time between application messages
            channel_model: 'bernoulli' or 'gilbert'
            retransmit_policy: Timeout retransmission policy
            output_file: Path to output CSV file
            on_progress: Callback for progress updates
            show_progress: Display a tqdm progress bar
        """
        self.loss_probs = loss_probs if loss_probs is not None else LOSS_PROBS
        self.corrupt_probs = corrupt_probs if corrupt_probs is not None else CORRUPT_PROBS
        self.runs_per_config = runs_per_config
        self.num_messages = num_messages
        self.message_interval = message_interval
        self.channel_model = channel_model
        self.retransmit_policy = retransmit_policy
        self.output_file = output_file
        self.on_progress = on_progress
        self.show_progress = show_progress

        self.results: List[Dict] = []

        self.total_runs = (len(self.loss_probs) *
                           len(self.corrupt_probs) *
                           self.runs_per_config)
        self.completed_runs = 0
        self.start_time = 0.0

    def _generate_run_configs(self) -> List[RunConfig]:
        """Generate all run configurations."""
        configs = []

        for i, loss_prob in enumerate(self.loss_probs):
            for j, corrupt_prob in enumerate(self.corrupt_probs):
                for run_id in range(self.runs_per_config):
                    # Unique seed for each run
                    seed = RNG_SEED_BASE + i * 1000 + j * 100 + run_id * 10000

                    configs.append(RunConfig(
                        loss_prob=loss_prob,
                        corrupt_prob=corrupt_prob,
                        run_id=run_id,
                        seed=seed,
                        num_messages=self.num_messages,
                        message_interval=self.message_interval,
                        channel_model=self.channel_model,
                        retransmit_policy=self.retransmit_policy
                    ))

        return configs

    def _record(self, result: Dict):
        self.results.append(result)
        self.completed_runs += 1
        if self.on_progress:
            self.on_progress(self.completed_runs, self.total_runs, result)

    def run_sequential(self) -> pd.DataFrame:
        """
        Run all simulations sequentially.

        Returns:
            DataFrame with one row per run
        """
        configs = self._generate_run_configs()
        self.results = []
        self.completed_runs = 0
        self.start_time = time.time()

        for config in tqdm(configs, desc="Simulations", disable=not self.show_progress):
            self._record(run_single_simulation(config))

        return self.to_dataframe()

    def run_parallel(self, max_workers: Optional[int] = None) -> pd.DataFrame:
        """
        Run simulations in parallel using multiprocessing.

        Args:
            max_workers: Number of parallel workers (default: CPU count)

        Returns:
            DataFrame with one row per run
        """
        if max_workers is None:
            max_workers = multiprocessing.cpu_count()

        configs = self._generate_run_configs()
        self.results = []
        self.completed_runs = 0
        self.start_time = time.time()

        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            futures = [executor.submit(run_single_simulation, config) for config in configs]
            for future in tqdm(as_completed(futures), total=len(futures),
                               desc="Simulations", disable=not self.show_progress):
                self._record(future.result())

        return self.to_dataframe()

    def to_dataframe(self) -> pd.DataFrame:
        """Results as a DataFrame sorted by grid point and run."""
        df = pd.DataFrame(self.results)
        if df.empty:
            return df
        return df.sort_values(['loss_prob', 'corrupt_prob', 'run_id']).reset_index(drop=True)

    def save_results(self, filepath: Optional[str] = None) -> Optional[str]:
        """
        Save results to CSV file.

        Args:
            filepath: Output file path (default: self.output_file)

        Returns:
            Path written, or None if there was nothing to save
        """
        filepath = filepath or self.output_file
        if not self.results:
            return None

        directory = os.path.dirname(filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)

        self.to_dataframe().to_csv(filepath, index=False)
        return filepath

    def get_aggregated_results(self) -> pd.DataFrame:
        """
        Get aggregated results by (loss, corruption) pair.

        Returns:
            DataFrame with mean/std throughput and mean retransmission stats
        """
        df = self.to_dataframe()
        if df.empty:
            return df
        return aggregate_results(df)


def aggregate_results(df: pd.DataFrame) -> pd.DataFrame:
    """Mean/std of the key metrics for each (loss, corruption) pair."""
    grouped = df.groupby(['loss_prob', 'corrupt_prob'])
    aggregated = grouped.agg(
        throughput_mean=('throughput', 'mean'),
        throughput_std=('throughput', 'std'),
        efficiency_mean=('efficiency', 'mean'),
        retx_mean=('packets_resent', 'mean'),
        delay_mean=('delay_mean', 'mean'),
        all_valid=('data_valid', 'all'),
        runs=('run_id', 'count')
    )
    aggregated['throughput_std'] = aggregated['throughput_std'].fillna(0.0)
    return aggregated.reset_index()


if __name__ == "__main__":
    print("=" * 60)
    print("BATCH RUNNER TEST")
    print("=" * 60)

    runner = BatchRunner(
        loss_probs=[0.0, 0.2],
        corrupt_probs=[0.0, 0.2],
        runs_per_config=2,
        num_messages=100
    )

    print(f"\nTotal runs: {runner.total_runs}")
    runner.run_sequential()

    print("\nAggregated results:")
    print(runner.get_aggregated_results().to_string(index=False))
