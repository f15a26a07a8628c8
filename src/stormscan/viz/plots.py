"""Quick-look figures for detection outputs."""

from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd


def plot_candidates(candidates: pd.DataFrame, out_path: str | Path) -> Path:
    p = Path(out_path)
    p.parent.mkdir(parents=True, exist_ok=True)

    fig, ax = plt.subplots(figsize=(8, 4))
    if not candidates.empty:
        wind = pd.to_numeric(candidates["wind_max"], errors="coerce").fillna(0.0).to_numpy(dtype=float)
        sizes = 10.0 + 40.0 * wind / max(float(np.max(wind)), 1e-12)
        sc = ax.scatter(candidates["lon"], candidates["lat"], s=sizes, c=candidates["psl"], cmap="viridis_r")
        fig.colorbar(sc, ax=ax, label="psl")
    else:
        ax.text(0.5, 0.5, "No candidates", ha="center", va="center", transform=ax.transAxes)
    ax.set_xlabel("lon")
    ax.set_ylabel("lat")
    ax.set_title("Storm-center candidates")
    ax.grid(alpha=0.3)
    fig.tight_layout()
    fig.savefig(p, dpi=140)
    plt.close(fig)
    return p


def plot_tag_frequency(tags: pd.DataFrame, out_path: str | Path) -> Path:
    """Fraction of timesteps in which each cell was tagged."""

    p = Path(out_path)
    p.parent.mkdir(parents=True, exist_ok=True)

    fig, ax = plt.subplots(figsize=(8, 4))
    if not tags.empty:
        freq = tags.pivot_table(index="lat", columns="lon", values="ar_tag", aggfunc="mean")
        mesh = ax.pcolormesh(freq.columns.to_numpy(), freq.index.to_numpy(), freq.to_numpy(dtype=float), shading="auto", vmin=0.0, vmax=1.0)
        fig.colorbar(mesh, ax=ax, label="tag frequency")
    else:
        ax.text(0.5, 0.5, "No tagged cells", ha="center", va="center", transform=ax.transAxes)
    ax.set_xlabel("lon")
    ax.set_ylabel("lat")
    ax.set_title("Atmospheric-river tag frequency")
    fig.tight_layout()
    fig.savefig(p, dpi=140)
    plt.close(fig)
    return p
