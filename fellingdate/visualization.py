"""
Visualization Module for Felling Date Estimation
================================================

Plots for:
- a sapwood model (empirical histogram + fitted density + HDI)
- a single felling date PMF with its HDI
- a combined model with the individual series
- a summed probability density

Every function returns (fig, ax) and saves the figure when ``save_path``
is given.
"""

from pathlib import Path

import numpy as np
import matplotlib.pyplot as plt

from .config import PLOT_STYLE, PLOT_PARAMS, COLORS, OUTPUT_DIR, ensure_output_dir
from .exceptions import Diagnostic


# ============================================================================
# PLOT SETUP
# ============================================================================

def setup_plot_style():
    """Apply plot settings."""
    try:
        plt.style.use(PLOT_STYLE)
    except OSError:
        plt.style.use('default')
    plt.rcParams.update(PLOT_PARAMS)


def get_figure_path(filename, create_dir=True):
    """Get full path for saving figure."""
    if create_dir:
        ensure_output_dir()
    return Path(OUTPUT_DIR) / filename


def _finish(fig, save_path):
    fig.tight_layout()
    if save_path:
        fig.savefig(save_path, dpi=300, bbox_inches='tight')
        print(f"Figure saved to: {save_path}")


def _shade_hdi(ax, x, y, interval, color, label):
    if interval is None or interval.lower is None or interval.upper is None:
        return
    inside = (x >= interval.lower) & (x <= interval.upper)
    ax.fill_between(x, y, where=inside, step='mid', alpha=0.35, color=color,
                    label=label)


# ============================================================================
# SAPWOOD MODEL
# ============================================================================

def plot_sapwood_model(model, figsize=None, save_path=None):
    """
    Empirical sapwood counts with the fitted density.

    Parameters
    ----------
    model : dict
        Output from ``density.sw_model()``
    """
    setup_plot_style()
    fig, ax = plt.subplots(figsize=figsize)

    table = model['table']
    ax.bar(table['n_sapwood'], table['p_observed'], width=0.9,
           color=COLORS['histogram'], edgecolor='gray', label='observed')

    fitted = model['fit']
    lo, hi, n = model['range']
    x = np.arange(0, hi + 20)
    y = fitted.pdf(x)
    ax.plot(x, y, color=COLORS['density'], linewidth=2,
            label=f"{fitted.densfun} fit")
    interval = model['hdi']
    _shade_hdi(ax, x, y, interval, COLORS['hdi'],
               f"hdi {interval.cred_mass:.1%}: {interval.lower}-{interval.upper}")

    params = ', '.join(f"{k} = {v:.3f}" for k, v in model['fit_parameters'].items())
    ax.set_title(f"{model['sapwood_data']} (n = {n})\n{params}")
    ax.set_xlabel('Number of sapwood rings')
    ax.set_ylabel('Density')
    ax.legend()

    _finish(fig, save_path)
    return fig, ax


# ============================================================================
# SINGLE SERIES
# ============================================================================

def plot_interval(pmf, figsize=None, save_path=None):
    """Felling date PMF of one series with its HDI."""
    setup_plot_style()
    fig, ax = plt.subplots(figsize=figsize)

    x, y = pmf.years, pmf.p
    ax.step(x, y, where='mid', color=COLORS['density'], linewidth=2)
    interval = pmf.hdi
    if interval.upper is not None:
        _shade_hdi(ax, x, y, interval, COLORS['hdi'],
                   f"hdi {interval.cred_mass:.1%}: "
                   f"{interval.lower} - {interval.upper}")
    else:
        ax.axvline(interval.lower, color=COLORS['hdi'], linestyle='--',
                   label=f"after {interval.lower}")
    if not pmf.is_relative:
        ax.axvline(pmf.last, color=COLORS['exact'], linewidth=1,
                   label=f"last ring: {pmf.last}")

    ax.set_xlabel('Number of sapwood rings' if pmf.is_relative else 'Calendar year')
    ax.set_ylabel('p')
    ax.set_title(f"{pmf.n_sapwood} sapwood rings - {pmf.sw_data} ({pmf.densfun})")
    ax.legend()

    _finish(fig, save_path)
    return fig, ax


# ============================================================================
# COMBINED MODEL
# ============================================================================

def plot_combine(model, figsize=None, save_path=None):
    """Individual series (thin lines) and the combined estimate (filled)."""
    setup_plot_style()
    fig, ax = plt.subplots(figsize=figsize)

    table = model.table
    x = table['year'].to_numpy()
    for label, kind in zip(model.summary['series'], model.summary['kind']):
        a = model.a_i[label]
        if kind == 'exact':
            year = x[np.argmax(table[label].to_numpy())]
            ax.axvline(year, color=COLORS['exact'], linewidth=1, alpha=0.7,
                       label=f"{label} (A_i = {a:.0f}%)")
        else:
            ax.step(x, table[label], where='mid', linewidth=1, alpha=0.7,
                    label=f"{label} (A_i = {a:.0f}%)")

    if Diagnostic.NO_OVERLAP not in model.flags:
        y = model.p
        ax.step(x, y, where='mid', color=COLORS['combined'], linewidth=2,
                label='combined')
        _shade_hdi(ax, x, y, model.hdi, COLORS['combined'],
                   f"hdi {model.hdi.cred_mass:.1%}")

    status = '' if model.is_sound else ' - NOT SOUND'
    ax.set_title(f"Combined felling date: A_comb = {model.a_comb:.1f}% "
                 f"(A_c = {model.a_critical:.0f}%){status}")
    ax.set_xlabel('Calendar year')
    ax.set_ylabel('p')
    ax.legend(fontsize=8)

    _finish(fig, save_path)
    return fig, ax


# ============================================================================
# SUMMED PROBABILITY DENSITY
# ============================================================================

def plot_sum(spd, figsize=None, save_path=None, show_series=True):
    """Summed probability density, optionally over the individual series."""
    setup_plot_style()
    fig, ax = plt.subplots(figsize=figsize)

    x = spd.years
    if show_series:
        for label in spd.series:
            ax.step(x, spd.table[label], where='mid', color='gray',
                    linewidth=0.8, alpha=0.5)
    ax.fill_between(x, spd.spd, step='mid', color=COLORS['spd'], alpha=0.4)
    ax.step(x, spd.spd, where='mid', color=COLORS['spd'], linewidth=2,
            label=f"SPD ({spd.n_series} series)")

    ax.set_xlabel('Calendar year')
    ax.set_ylabel('Summed probability')
    ax.set_title('Summed probability density of felling dates')
    ax.legend()

    _finish(fig, save_path)
    return fig, ax
