from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd
from sklearn.exceptions import ConvergenceWarning
from sklearn.linear_model import LogisticRegression
from sklearn.metrics import roc_auc_score

from .exceptions import InvalidParameterError
from .preprocessor import FittedPipeline, PipelineSpec
from .schema import PROBA_COLUMNS, TARGET
from .utils.logger import get_logger

# stands in for an unpenalized fit when penalty == 0
MAX_INVERSE_STRENGTH = 1e12


def labels(df: pd.DataFrame) -> np.ndarray:
    """Integer 0/1 view of the ``death`` column."""
    return (df[TARGET].astype(str) == "1").astype(int).to_numpy()


@dataclass(frozen=True)
class LassoSpec:
    """Penalized logistic regression, parameterized the way glmnet is.

    The objective is mean log-loss + penalty * ||beta||_1, which corresponds to
    scikit-learn's ``C = 1 / (n_samples * penalty)``. ``mixture`` below 1 mixes
    in an L2 term (elastic net).
    """

    mixture: float = 1.0
    max_iter: int = 1000
    tol: float = 1e-4
    intercept_scaling: float = 10.0

    def __post_init__(self):
        if not 0.0 <= self.mixture <= 1.0:
            raise InvalidParameterError(
                f"mixture must be in [0, 1], got {self.mixture}", stage="model"
            )

    @staticmethod
    def inverse_strength(penalty: float, n_samples: int) -> float:
        if penalty < 0:
            raise InvalidParameterError(
                f"penalty must be non-negative, got {penalty}", stage="model"
            )
        if penalty == 0:
            return MAX_INVERSE_STRENGTH
        return float(min(1.0 / (n_samples * penalty), MAX_INVERSE_STRENGTH))

    def build(
        self, penalty: float, n_samples: int, random_state: Optional[int] = None
    ) -> LogisticRegression:
        C = self.inverse_strength(penalty, n_samples)
        if self.mixture == 1.0:
            return LogisticRegression(
                penalty="l1",
                solver="liblinear",
                C=C,
                max_iter=self.max_iter,
                tol=self.tol,
                intercept_scaling=self.intercept_scaling,
                random_state=random_state,
            )
        return LogisticRegression(
            penalty="elasticnet",
            solver="saga",
            l1_ratio=self.mixture,
            C=C,
            max_iter=self.max_iter,
            tol=self.tol,
            random_state=random_state,
        )


class FinalModel:
    """Pipeline and model refit on the full training set at the selected penalty."""

    def __init__(
        self,
        pipeline: FittedPipeline,
        estimator: LogisticRegression,
        penalty: float,
    ):
        self.pipeline = pipeline
        self.estimator = estimator
        self.penalty = penalty
        self.test_metrics_: Optional[dict[str, float]] = None

    @property
    def feature_names(self) -> list[str]:
        return self.pipeline.feature_names

    def coefficients(self) -> pd.DataFrame:
        """Signed estimates per term, intercept first."""
        terms = ["(Intercept)"] + self.feature_names
        estimates = np.concatenate([self.estimator.intercept_, self.estimator.coef_[0]])
        return pd.DataFrame({"term": terms, "estimate": estimates, "penalty": self.penalty})

    def importances(self) -> pd.DataFrame:
        """Features ranked by absolute coefficient, largest first."""
        coef = self.estimator.coef_[0]
        table = pd.DataFrame(
            {
                "feature": self.feature_names,
                "importance": np.abs(coef),
                "sign": np.sign(coef).astype(int),
            }
        )
        return table.sort_values(
            "importance", ascending=False, kind="mergesort"
        ).reset_index(drop=True)

    def predict_proba(self, df: pd.DataFrame) -> pd.DataFrame:
        X = self.pipeline.transform(df)
        proba = self.estimator.predict_proba(X)
        return pd.DataFrame(proba, columns=PROBA_COLUMNS, index=df.index)

    def predict(self, df: pd.DataFrame) -> pd.Series:
        """Most probable class as ``"0"`` / ``"1"``."""
        proba = self.predict_proba(df)
        return (proba[PROBA_COLUMNS[1]] > 0.5).astype(int).astype(str).rename("pred_class")


class ModelTrainer:
    """
    Fits a fresh preprocessing pipeline and model on one training subset:
    preprocessing is fit only on the rows the model is trained on, then applied
    to held-out rows.

    Provides:
      - fit_score: fit on a fold's training part, ROC-AUC on its validation part
      - fit_final: fit pipeline + model on the full training set
    """

    def __init__(self, model_spec: LassoSpec, pipeline_spec: PipelineSpec):
        self.model_spec = model_spec
        self.pipeline_spec = pipeline_spec
        self.logger = get_logger(self.__class__.__name__)

    def _fit(
        self, df: pd.DataFrame, penalty: float, random_state: Optional[int]
    ) -> tuple[FittedPipeline, LogisticRegression, bool]:
        pipeline = self.pipeline_spec.fit(df)
        X = pipeline.transform(df)
        y = labels(df)

        model = self.model_spec.build(penalty, len(y), random_state=random_state)
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", ConvergenceWarning)
            model.fit(X, y)
        converged = not any(issubclass(w.category, ConvergenceWarning) for w in caught)
        return pipeline, model, converged

    def fit_score(
        self,
        train_df: pd.DataFrame,
        val_df: pd.DataFrame,
        penalty: float,
        random_state: Optional[int] = None,
    ) -> tuple[float, str]:
        """
        Returns (roc_auc, status). Status is "ok" for a usable score; otherwise
        the score is NaN and status names the failure.
        """
        y_val = labels(val_df)
        if len(np.unique(y_val)) < 2:
            return float("nan"), "single_class"

        self.model_spec.inverse_strength(penalty, len(train_df))
        try:
            pipeline, model, converged = self._fit(train_df, penalty, random_state)
        except ValueError as exc:
            self.logger.warning(f"Fit failed at penalty={penalty:.3g}: {exc}")
            return float("nan"), "error"

        if not converged:
            return float("nan"), "not_converged"

        proba = model.predict_proba(pipeline.transform(val_df))[:, 1]
        if np.all(proba == proba[0]):
            return float("nan"), "degenerate"

        return float(roc_auc_score(y_val, proba)), "ok"

    def fit_final(
        self,
        train_df: pd.DataFrame,
        penalty: float,
        random_state: Optional[int] = None,
    ) -> FinalModel:
        """Fit preprocessing + model on the full training set."""
        pipeline, model, converged = self._fit(train_df, penalty, random_state)
        if not converged:
            self.logger.warning(f"Final fit did not converge at penalty={penalty:.3g}")

        final = FinalModel(pipeline, model, penalty)
        n_selected = int(np.count_nonzero(model.coef_[0]))
        self.logger.info(
            f"Final model at penalty={penalty:.3g}: "
            f"{n_selected}/{len(final.feature_names)} non-zero coefficients"
        )
        return final
