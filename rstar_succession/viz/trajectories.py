"""Trajectory plots for R*-Succession runs.

Every function:
  - Accepts a SuccessionResult
  - Returns a matplotlib Figure
  - Has an optional ``save_path`` parameter (saves PNG when given)

matplotlib backend is forced to Agg (no display) on import.
"""

from __future__ import annotations

import matplotlib
matplotlib.use('Agg')

from typing import Optional, Sequence, TYPE_CHECKING

import matplotlib.pyplot as plt
import numpy as np

from rstar_succession.analysis import population_shares
from rstar_succession.viz.style import (
    RESOURCE_COLOR,
    TEXT_COLOR,
    dark_figure,
    dark_legend,
    save_figure,
    species_color,
)

if TYPE_CHECKING:
    from rstar_succession.model import SuccessionResult


# ═══════════════════════════════════════════════════════════════════════
# 1. POPULATIONS
# ═══════════════════════════════════════════════════════════════════════

def plot_population_trajectories(
    result: 'SuccessionResult',
    log_scale: bool = True,
    save_path: Optional[str] = None,
) -> plt.Figure:
    """Abundance of every species over time.

    Args:
        result: SuccessionResult.
        log_scale: Log y-axis; non-positive values are masked.
        save_path: Optional path to save the figure.

    Returns:
        matplotlib Figure.
    """
    fig, ax = dark_figure()
    for i, name in enumerate(result.species_names):
        values = result.populations[:, i]
        if log_scale:
            values = np.where(values > 0, values, np.nan)
        ax.plot(result.times, values, color=species_color(i),
                linewidth=2, label=name)

    if log_scale:
        ax.set_yscale('log')
    ax.set_xlabel('Time', fontsize=12)
    ax.set_ylabel('Abundance N', fontsize=12)
    ax.set_title('Population Trajectories', fontsize=14, fontweight='bold')
    ax.set_xlim(result.times[0], result.times[-1])
    dark_legend(ax, fontsize=10)

    if save_path:
        save_figure(fig, save_path)
    return fig


# ═══════════════════════════════════════════════════════════════════════
# 2. RESOURCE
# ═══════════════════════════════════════════════════════════════════════

def plot_resource_trajectory(
    result: 'SuccessionResult',
    R_star: Optional[Sequence[float]] = None,
    save_path: Optional[str] = None,
) -> plt.Figure:
    """Free resource over time, with optional dashed R* reference lines.

    The resource drops through successive R* levels as better competitors
    take over.
    """
    fig, ax = dark_figure()
    ax.plot(result.times, result.resource, color=RESOURCE_COLOR,
            linewidth=2.5, label='R')
    if R_star is not None:
        for i, rs in enumerate(R_star):
            ax.axhline(rs, color=species_color(i), linestyle='--',
                       linewidth=1.2, alpha=0.7,
                       label=f'R* {result.species_names[i]}')

    ax.set_xlabel('Time', fontsize=12)
    ax.set_ylabel('Resource R', fontsize=12)
    ax.set_title('Resource Level', fontsize=14, fontweight='bold')
    ax.set_xlim(result.times[0], result.times[-1])
    dark_legend(ax, fontsize=9)

    if save_path:
        save_figure(fig, save_path)
    return fig


# ═══════════════════════════════════════════════════════════════════════
# 3. GROWTH RATES
# ═══════════════════════════════════════════════════════════════════════

def plot_growth_rates(
    result: 'SuccessionResult',
    save_path: Optional[str] = None,
) -> plt.Figure:
    """Per-capita growth rate of each species; zero line marks R = R*."""
    fig, ax = dark_figure()
    for i, name in enumerate(result.species_names):
        ax.plot(result.times, result.growth_rates[:, i],
                color=species_color(i), linewidth=1.8, label=name)
    ax.axhline(0.0, color=TEXT_COLOR, linewidth=0.8, alpha=0.6)

    ax.set_xlabel('Time', fontsize=12)
    ax.set_ylabel('Per-capita growth r', fontsize=12)
    ax.set_title('Per-capita Growth Rates', fontsize=14, fontweight='bold')
    ax.set_xlim(result.times[0], result.times[-1])
    dark_legend(ax, fontsize=10)

    if save_path:
        save_figure(fig, save_path)
    return fig


# ═══════════════════════════════════════════════════════════════════════
# 4. COMMUNITY COMPOSITION
# ═══════════════════════════════════════════════════════════════════════

def plot_population_shares(
    result: 'SuccessionResult',
    save_path: Optional[str] = None,
) -> plt.Figure:
    """Stacked area of each species' share of total abundance."""
    shares = population_shares(result)
    fig, ax = dark_figure()
    ax.stackplot(result.times, shares.T,
                 colors=[species_color(i) for i in range(result.n_species)],
                 labels=result.species_names, alpha=0.85)

    ax.set_xlabel('Time', fontsize=12)
    ax.set_ylabel('Share of total abundance', fontsize=12)
    ax.set_title('Community Composition', fontsize=14, fontweight='bold')
    ax.set_xlim(result.times[0], result.times[-1])
    ax.set_ylim(0, 1)
    dark_legend(ax, fontsize=9, loc='center right')

    if save_path:
        save_figure(fig, save_path)
    return fig
