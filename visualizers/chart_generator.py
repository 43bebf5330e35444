"""Chart generator for W' balance visualization."""

import logging
from pathlib import Path
from typing import Optional

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np

from config import settings
from config.settings import CHART_DPI, CHART_FORMAT
from models.wprime import BalanceResult

logger = logging.getLogger(__name__)


class ChartGenerator:
    """Generate W' balance charts for analysed rides."""

    def __init__(self, output_dir: Path = None):
        """Initialize chart generator.

        Args:
            output_dir: Directory to save charts, defaults to REPORTS_DIR
        """
        self.output_dir = Path(output_dir) if output_dir else settings.REPORTS_DIR
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def create_wprime_chart(self, result: BalanceResult, filename: Optional[str] = None,
                            title: str = "W' Balance") -> Optional[str]:
        """Create W' balance vs time chart with match markers.

        Args:
            result: Output of the W' model
            filename: Chart file name, defaults to wprime_balance.<format>
            title: Chart title

        Returns:
            Path to saved chart, or None when there is nothing to plot
        """
        if result.is_empty:
            logger.info("No W' balance data, skipping chart")
            return None

        fig, ax = plt.subplots(figsize=(12, 5))

        minutes = result.series.minutes
        balance_kj = result.series.balance / 1000

        ax.plot(minutes, balance_kj, linewidth=0.8, color='purple', label="W' bal")
        ax.axhline(y=result.parameters.wprime / 1000, color='grey', linestyle='--',
                   label=f"W' {result.parameters.wprime / 1000:.1f} kJ")

        # Significant matches, start and stop points
        if len(result.markers):
            ax.scatter(result.markers.minutes, np.asarray(result.markers.balance) / 1000,
                       color='red', s=12, zorder=3, label=f"Matches ({len(result.markers) // 2})")

        ax.set_xlabel('Time (minutes)')
        ax.set_ylabel("W' balance (kJ)")
        ax.set_title(f"{title} (CP {result.parameters.cp:.0f}W, tau {result.parameters.tau}s)")
        ax.grid(True, alpha=0.3)
        ax.legend(loc='lower left')

        filepath = self.output_dir / (filename or f'wprime_balance.{CHART_FORMAT}')
        plt.tight_layout()
        plt.savefig(filepath, dpi=CHART_DPI, bbox_inches='tight')
        plt.close(fig)

        return str(filepath)
