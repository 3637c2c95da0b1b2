"""
Plots for a finished flat-plate run.

Generates contour plots of the final fields and the convergence history.
"""

import logging
from pathlib import Path

import matplotlib.pyplot as plt
import seaborn as sns

log = logging.getLogger(__name__)

FIELD_LABELS = {
    "p": "Pressure",
    "rho": "Density",
    "T": "Temperature",
    "u": "Velocity x",
    "v": "Velocity y",
    "M": "Mach number",
}


def plot_fields(fields, output_dir: Path) -> Path:
    """Contour plots of the final non-dimensional fields."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    x = fields.field_2d("x")
    y = fields.field_2d("y")

    fig, axes = plt.subplots(2, 3, figsize=(14, 7), sharex=True, sharey=True)
    for ax, (name, label) in zip(axes.flat, FIELD_LABELS.items()):
        cs = ax.contourf(x, y, fields.field_2d(name), levels=40, cmap="viridis")
        fig.colorbar(cs, ax=ax)
        ax.set_title(label)
    for ax in axes[-1]:
        ax.set_xlabel("x")
    for ax in axes[:, 0]:
        ax.set_ylabel("y")
    fig.tight_layout()

    output_path = output_dir / "fields.png"
    fig.savefig(output_path, dpi=150)
    plt.close(fig)
    return output_path


def plot_convergence(time_series, output_dir: Path) -> Path:
    """Plot max density change per iteration on a log scale."""
    df = time_series.to_dataframe()
    if df.empty:
        log.warning("No timeseries data available for convergence plot")
        return None

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    sns.set_style("darkgrid")
    fig, ax = plt.subplots()
    ax.semilogy(df["iteration"], df["density_change"], label="max |drho|")
    ax.set_xlabel("Iteration")
    ax.set_ylabel("Density change")
    ax.set_title("Convergence History")
    ax.legend(frameon=True)

    output_path = output_dir / "convergence.png"
    fig.savefig(output_path, dpi=150)
    plt.close(fig)
    return output_path
