from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass
from typing import Sequence

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from .exceptions import InvalidParameterError
from .model_trainer import ModelTrainer
from .splitter import Fold
from .utils.logger import get_logger


def penalty_grid(levels: int = 50, log10_range: Sequence[float] = (-10.0, 0.0)) -> np.ndarray:
    """Regular grid of penalty values, evenly spaced on the log10 scale."""
    if levels < 1:
        raise InvalidParameterError("Penalty grid must have at least one level", stage="tune")
    lo, hi = log10_range
    if lo > hi:
        raise InvalidParameterError(f"Invalid log10 penalty range {log10_range}", stage="tune")
    return np.logspace(lo, hi, levels)


def validate_grid(grid: Sequence[float]) -> np.ndarray:
    values = np.asarray(grid, dtype=float)
    if values.ndim != 1 or values.size == 0:
        raise InvalidParameterError("Penalty grid is empty", stage="tune")
    if not np.all(np.isfinite(values)) or np.any(values < 0):
        raise InvalidParameterError(
            "Penalty grid values must be finite and non-negative", stage="tune"
        )
    return values


@dataclass(frozen=True)
class FoldScore:
    penalty_index: int
    penalty: float
    fold: int
    roc_auc: float
    status: str


@dataclass
class TuningResult:
    """All (penalty, fold) scores of one grid search, ordered by penalty then fold."""
    grid: np.ndarray
    n_folds: int
    fold_scores: list[FoldScore]

    def __len__(self) -> int:
        return len(self.grid)

    def summary(self) -> pd.DataFrame:
        """One row per grid value: mean ROC-AUC over valid folds, its standard error and count."""
        valid: dict[int, list[float]] = {i: [] for i in range(len(self.grid))}
        for score in self.fold_scores:
            if score.status == "ok":
                valid[score.penalty_index].append(score.roc_auc)

        rows = []
        for idx, penalty in enumerate(self.grid):
            scores = np.asarray(valid[idx], dtype=float)
            n_valid = len(scores)
            rows.append(
                {
                    "penalty": float(penalty),
                    "mean": float(scores.mean()) if n_valid else float("nan"),
                    "std_err": (
                        float(scores.std(ddof=1) / np.sqrt(n_valid))
                        if n_valid > 1 else float("nan")
                    ),
                    "n_valid": n_valid,
                    "n_folds": self.n_folds,
                }
            )
        return pd.DataFrame(rows)

    @property
    def scores(self) -> dict[float, float]:
        summary = self.summary()
        return dict(zip(summary["penalty"], summary["mean"]))

    def fold_table(self) -> pd.DataFrame:
        return pd.DataFrame([asdict(score) for score in self.fold_scores])


def _score_unit(
    trainer: ModelTrainer,
    train_df: pd.DataFrame,
    penalty_index: int,
    penalty: float,
    fold: Fold,
    seed: int,
) -> FoldScore:
    auc, status = trainer.fit_score(
        fold.training(train_df),
        fold.validation(train_df),
        penalty,
        random_state=seed,
    )
    return FoldScore(penalty_index, penalty, fold.index, auc, status)


class HyperTuner:
    """Grid search over the LASSO penalty using leakage-safe CV from ModelTrainer.

    Every (penalty, fold) pair is an independent unit; with ``n_jobs != 1`` the
    units run on joblib workers. The solver seed of each unit depends only on
    its position in the grid and its fold index.
    """

    def __init__(self, trainer: ModelTrainer, n_jobs: int = 1, seed: int = 42):
        self.trainer = trainer
        self.n_jobs = n_jobs
        self.seed = seed
        self.logger = get_logger(self.__class__.__name__)
        self.result_: TuningResult | None = None

    def _unit_seed(self, penalty_index: int, fold_index: int) -> int:
        return (self.seed + 1000 * penalty_index + fold_index) % (2**32 - 1)

    def tune(
        self,
        train_df: pd.DataFrame,
        folds: Sequence[Fold],
        grid: Sequence[float],
    ) -> TuningResult:
        grid = validate_grid(grid)
        if not folds:
            raise InvalidParameterError("No resampling folds supplied", stage="tune")

        units = [
            (i, float(penalty), fold, self._unit_seed(i, fold.index))
            for i, penalty in enumerate(grid)
            for fold in folds
        ]
        self.logger.info(
            f"Tuning {len(grid)} penalty values x {len(folds)} folds "
            f"({len(units)} fits, n_jobs={self.n_jobs})"
        )

        if self.n_jobs != 1:
            scores = Parallel(n_jobs=self.n_jobs)(
                delayed(_score_unit)(self.trainer, train_df, i, penalty, fold, seed)
                for i, penalty, fold, seed in units
            )
        else:
            scores = [
                _score_unit(self.trainer, train_df, i, penalty, fold, seed)
                for i, penalty, fold, seed in units
            ]

        scores = sorted(scores, key=lambda s: (s.penalty_index, s.fold))
        result = TuningResult(grid=grid, n_folds=len(folds), fold_scores=scores)

        failures = Counter(s.status for s in scores if s.status != "ok")
        if failures:
            self.logger.warning(
                f"Excluded {sum(failures.values())}/{len(scores)} fold fits: {dict(failures)}"
            )

        summary = result.summary()
        n_undefined = int(summary["mean"].isna().sum())
        if n_undefined:
            self.logger.warning(f"{n_undefined} penalty values have no valid fold score")

        self.result_ = result
        return result
