"""
Visualization utilities for the FAST detection pipeline.

All functions save figures to disk rather than displaying them interactively,
making the module suitable for headless execution.
"""

import os
import numpy as np
import matplotlib
matplotlib.use("Agg")          # non-interactive backend
import matplotlib.pyplot as plt


# ---------------------------------------------------------------------------
# Step 1 – FAST detection and suppression
# ---------------------------------------------------------------------------

def save_fast_corners(img: np.ndarray, pre: np.ndarray, post: np.ndarray,
                      scene: str, out_dir: str, marker_size: int = 6) -> str:
    """Save a side-by-side figure of corners before and after suppression.

    Parameters
    ----------
    img : np.ndarray
        Image to draw on (grayscale or RGB).
    pre, post : np.ndarray
        2 x N arrays of (row, col) corners before and after suppression.
    scene : str
        Scene name, used as output subdirectory and in titles.
    out_dir : str
        Root results directory.
    marker_size : int
        Size of the corner markers.

    Returns
    -------
    str
        Path of the written figure.
    """
    cmap = "gray" if img.ndim == 2 else None
    fig, axes = plt.subplots(1, 2, figsize=(14, 7))

    axes[0].imshow(img, cmap=cmap)
    axes[0].plot(pre[1], pre[0], "r+", markersize=marker_size, markeredgewidth=1)
    axes[0].set_title(f"{scene} – FAST candidates ({pre.shape[1]} pts)"); axes[0].axis("off")

    axes[1].imshow(img, cmap=cmap)
    axes[1].plot(post[1], post[0], "g+", markersize=marker_size, markeredgewidth=2)
    axes[1].set_title(f"{scene} – after NMS ({post.shape[1]} pts)"); axes[1].axis("off")

    path = os.path.join(out_dir, scene, "step1_fast.jpg")
    plt.tight_layout()
    plt.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return path


# ---------------------------------------------------------------------------
# Step 2 – Corner strength
# ---------------------------------------------------------------------------

def save_score_histogram(scores: np.ndarray, scene: str, out_dir: str) -> str:
    """Save a histogram of corner scores for the detected features."""
    plt.figure(figsize=(10, 5))
    plt.hist(scores, bins=50, edgecolor="black", alpha=0.7)
    plt.xlabel("Corner score")
    plt.ylabel("Count")
    plt.title(f"{scene} – FAST score distribution ({len(scores)} corners)")
    plt.grid(True, alpha=0.3)

    path = os.path.join(out_dir, scene, "step2_scores.jpg")
    plt.savefig(path, dpi=150, bbox_inches="tight")
    plt.close()
    return path
