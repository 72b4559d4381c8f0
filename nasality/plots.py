"""
Diagnostic figures for the nasality lab.

Probability tracks are smoothed with a B-spline GAM, y ~ s(x) with five
basis functions, and drawn with their 95% confidence band.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from statsmodels.gam.api import BSplines, GLMGam

TRACK_BASIS = 5
SPLINE_DEGREE = 3


def gam_track(
    x,
    y,
    df: int = TRACK_BASIS,
    grid_size: int = 100,
    alpha: float = 0.0,
) -> pd.DataFrame:
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if np.unique(x).size < df:
        raise ValueError(f"need at least {df} distinct x values to fit the smoother, got {np.unique(x).size}")

    smoother = BSplines(x.reshape(-1, 1), df=[df], degree=[SPLINE_DEGREE])
    gam = GLMGam(y, exog=np.ones((len(x), 1)), smoother=smoother, alpha=alpha)
    res = gam.fit()

    grid = np.linspace(x.min(), x.max(), grid_size)
    prediction = res.get_prediction(exog=np.ones((grid_size, 1)), exog_smooth=grid.reshape(-1, 1))
    frame = prediction.summary_frame(alpha=0.05)
    return pd.DataFrame(
        {
            "x": grid,
            "fit": frame["mean"].to_numpy(),
            "lower": frame["mean_ci_lower"].to_numpy(),
            "upper": frame["mean_ci_upper"].to_numpy(),
        }
    )


def plot_feature_importance(importance_df: pd.DataFrame, path: Path, top_n: int = 11) -> None:
    display_frame = importance_df.sort_values("Gain", ascending=False).head(top_n)
    fig, ax = plt.subplots(figsize=(7, 5))
    sns.barplot(
        data=display_frame,
        x="Gain",
        y="Feature",
        hue="Gain",
        palette="viridis",
        dodge=False,
        legend=False,
        ax=ax,
    )
    ax.set_xlabel("Importance (Model Gain)")
    ax.set_ylabel("Acoustic Feature")
    ax.set_title("XGBoost Acoustic Predictors of Nasality")
    fig.tight_layout()
    fig.savefig(path, dpi=200)
    plt.close(fig)


def plot_tracks(
    df: pd.DataFrame,
    group_col: str,
    path: Path,
    title: str = "",
    legend_title: Optional[str] = None,
    x_col: str = "timestamp",
    y_col: str = "outcome_probability",
    logger: Optional[logging.Logger] = None,
) -> List[str]:
    """
    One smoothed track per level of group_col. Levels the smoother cannot
    fit are skipped and reported on the logger.
    :return: the levels that were drawn
    """
    logger = logger or logging.getLogger(__name__)
    data = df.dropna(subset=[group_col, x_col, y_col])
    levels = sorted(data[group_col].astype(str).unique())
    palette = sns.color_palette("husl", max(len(levels), 1))

    fig, ax = plt.subplots(figsize=(8, 5))
    drawn: List[str] = []
    for color, level in zip(palette, levels):
        subset = data.loc[data[group_col].astype(str) == level]
        try:
            track = gam_track(subset[x_col], subset[y_col])
        except (ValueError, np.linalg.LinAlgError) as exc:
            logger.warning("skipping %s=%s track: %s", group_col, level, exc)
            continue
        ax.plot(track["x"], track["fit"], color=color, label=level)
        ax.fill_between(track["x"], track["lower"], track["upper"], color=color, alpha=0.2, linewidth=0)
        drawn.append(level)

    ax.set_xlabel("Normalized time of vowel")
    ax.set_ylabel("Degree of Nasalization")
    if title:
        ax.set_title(title)
    if drawn:
        ax.legend(title=legend_title or group_col, bbox_to_anchor=(1.02, 1), loc="upper left", fontsize=8)
    fig.tight_layout()
    fig.savefig(path, dpi=200)
    plt.close(fig)
    return drawn
