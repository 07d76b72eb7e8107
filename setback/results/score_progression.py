# setback/results/score_progression.py
from __future__ import annotations

from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402


def load_hand_scores(csv_path: str | Path) -> pd.DataFrame:
    """Load a hand-score CSV written by `game_log.write_hand_scores_csv`."""
    df = pd.read_csv(csv_path)
    missing = {"hand_index", "score_0", "score_1"} - set(df.columns)
    if missing:
        raise ValueError(f"Hand score CSV is missing columns: {sorted(missing)}")
    return df.sort_values("hand_index")


def plot_score_progression(
    csv_path: str | Path,
    out_path: str | Path,
    *,
    team_names: tuple[str, str] = ("Partnership 1", "Partnership 2"),
    winning_score: int | None = None,
) -> Path:
    """Plot running partnership scores hand by hand and save the figure."""
    df = load_hand_scores(csv_path)

    # Hand 0 starts from a 0-0 score.
    hands = [0] + (df["hand_index"] + 1).tolist()
    fig, ax = plt.subplots(figsize=(8, 5))
    for column, label in zip(("score_0", "score_1"), team_names):
        ax.plot(hands, [0] + df[column].tolist(), marker="o", label=label)

    if winning_score is not None:
        ax.axhline(winning_score, linestyle="--", color="grey", label="Winning score")
    ax.axhline(0, linewidth=0.8, color="black")

    ax.set_xlabel("Hands played")
    ax.set_ylabel("Score")
    ax.set_title("Partnership scores by hand")
    ax.grid(True, linestyle=":", alpha=0.5)
    ax.legend()
    fig.tight_layout()

    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out)
    plt.close(fig)
    return out
