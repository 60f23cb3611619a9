"""
Throughput Heatmap Visualization

This module generates 2D heatmaps showing Throughput = f(loss, corruption).
"""

import os
from typing import Optional, Tuple

import numpy as np
import pandas as pd
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import seaborn as sns

from ..config import PLOTS_DIR

METRIC_LABELS = {
    'throughput': "Throughput (messages / time unit)",
    'efficiency': "Efficiency (delivered / data packets sent)",
    'packets_resent': "Retransmissions",
    'delay_mean': "Mean delivery delay (time units)"
}


class ThroughputHeatmap:
    """
    Generates 2D heatmaps of a run metric over loss and corruption.

    Rows are loss probabilities (largest at the top), columns are corruption
    probabilities, and each cell is the mean over all runs at that point.
    """

    def __init__(
        self,
        results: Optional[pd.DataFrame] = None,
        csv_file: Optional[str] = None
    ):
        """
        Initialize heatmap generator.

        Args:
            results: DataFrame with one row per run
            csv_file: Path to CSV file with results
        """
        if results is not None:
            self.results = results
        elif csv_file:
            self.results = pd.read_csv(csv_file)
        else:
            self.results = pd.DataFrame()

    def create_matrix(self, metric: str = 'throughput') -> pd.DataFrame:
        """
        Create matrix of mean metric values.

        Returns:
            DataFrame indexed by loss_prob (descending) with one column per corrupt_prob
        """
        if metric not in self.results.columns:
            raise KeyError(f"Results have no '{metric}' column")

        matrix = self.results.pivot_table(
            index='loss_prob', columns='corrupt_prob', values=metric, aggfunc='mean'
        )
        return matrix.sort_index(ascending=False)

    def plot(
        self,
        output_file: Optional[str] = None,
        metric: str = 'throughput',
        title: str = "Throughput vs Loss and Corruption Probability",
        figsize: Tuple[int, int] = (10, 7),
        cmap: str = "viridis",
        show_values: bool = True
    ) -> str:
        """
        Generate and save heatmap.

        Args:
            output_file: Output file path (auto-generated if None)
            metric: Result column to plot
            title: Plot title
            figsize: Figure size (width, height)
            cmap: Colormap name
            show_values: Show values in cells

        Returns:
            Path to saved figure
        """
        if self.results.empty:
            raise ValueError("No results to plot")

        matrix = self.create_matrix(metric)

        fig, ax = plt.subplots(figsize=figsize)

        sns.heatmap(
            matrix,
            annot=show_values,
            fmt='.3f',
            cmap=cmap,
            xticklabels=[f"{c:g}" for c in matrix.columns],
            yticklabels=[f"{r:g}" for r in matrix.index],
            ax=ax,
            cbar_kws={'label': METRIC_LABELS.get(metric, metric)}
        )

        ax.set_xlabel('Corruption Probability', fontsize=12)
        ax.set_ylabel('Loss Probability', fontsize=12)
        ax.set_title(title, fontsize=14, fontweight='bold')

        fig.tight_layout()

        if output_file is None:
            os.makedirs(PLOTS_DIR, exist_ok=True)
            output_file = os.path.join(PLOTS_DIR, f'{metric}_heatmap.png')
        else:
            directory = os.path.dirname(output_file)
            if directory:
                os.makedirs(directory, exist_ok=True)

        fig.savefig(output_file, dpi=150, bbox_inches='tight')
        plt.close(fig)

        return output_file


if __name__ == "__main__":
    print("=" * 60)
    print("HEATMAP GENERATOR TEST")
    print("=" * 60)

    rng = np.random.default_rng(0)
    rows = []
    for loss in [0.0, 0.1, 0.2, 0.3]:
        for corrupt in [0.0, 0.1, 0.2, 0.3]:
            for run in range(3):
                base = 0.1 * ((1 - loss) * (1 - corrupt)) ** 2
                rows.append({
                    'loss_prob': loss,
                    'corrupt_prob': corrupt,
                    'run_id': run,
                    'throughput': max(0.0, base + rng.normal(0, 0.005))
                })

    heatmap = ThroughputHeatmap(results=pd.DataFrame(rows))
    output = heatmap.plot(title="Test Throughput Heatmap")
    print(f"Heatmap saved to: {output}")
