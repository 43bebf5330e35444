"""Visualization modules for W' balance data."""

from .chart_generator import ChartGenerator

__all__ = ['ChartGenerator']
