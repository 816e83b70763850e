"""
Walk-forward (expanding-window) split generation.

Design
------
Walk-forward validation simulates how the forecaster is used in practice:
at each origin we freeze what the model "knows" and ask it for the next
year.  Annual migration series are short (a handful of years), so the
training window *expands* from the first observation instead of rolling:
dropping early years would leave too few points to fit anything.

Split structure
---------------
Given a series of ``n_points`` observations and ``min_train_points``:

  fold k:  train = series[0 : min_train_points + k]
           test  = series[min_train_points + k]     ← one step ahead

Folds stop when the test index would run past the end of the series, so a
series of length ``min_train_points`` produces no folds at all.

Leakage prevention
------------------
The structural guarantee is: ``test_index == train_end`` and training covers
indices strictly below ``train_end``.  No test observation is ever visible
to the model that predicts it.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class WalkForwardFold:
    """One walk-forward evaluation fold.

    Attributes:
        fold_index: Zero-based index (for sorting and display).
        train_end:  Exclusive end of the training prefix; the model sees
                    ``series[:train_end]``.
        test_index: Index of the single observation being predicted.
    """

    fold_index: int
    train_end: int
    test_index: int

    @property
    def train_size(self) -> int:
        return self.train_end


def generate_walk_forward_splits(
    n_points: int,
    min_train_points: int = 4,
) -> list[WalkForwardFold]:
    """Generate expanding-window one-step-ahead folds.

    Args:
        n_points:         Length of the series.
        min_train_points: Smallest training prefix (>= 1).

    Returns:
        List of WalkForwardFold objects, sorted by fold_index.
        Empty list if the series is too short to form any fold.

    Raises:
        ValueError: If ``min_train_points`` is out of range.
    """
    if min_train_points < 1:
        raise ValueError(f"min_train_points must be >= 1, got {min_train_points}")

    return [
        WalkForwardFold(fold_index=k, train_end=train_end, test_index=train_end)
        for k, train_end in enumerate(range(min_train_points, n_points))
    ]
