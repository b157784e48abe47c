import json
import os
import time
from typing import Callable, Dict, Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from sklearn.metrics import (
    accuracy_score,
    average_precision_score,
    balanced_accuracy_score,
    brier_score_loss,
    confusion_matrix,
    f1_score,
    log_loss,
    precision_score,
    recall_score,
    roc_auc_score,
)

from .exceptions import DataIntegrityError, InvalidParameterError
from .model_trainer import FinalModel, labels
from .schema import PROBA_COLUMNS
from .utils.logger import get_logger

MetricFn = Callable[[np.ndarray, np.ndarray, np.ndarray], float]

# each metric receives (y_true, P(death), predicted class)
METRICS: Dict[str, MetricFn] = {
    "roc_auc": lambda y, p, yhat: roc_auc_score(y, p),
    "pr_auc": lambda y, p, yhat: average_precision_score(y, p),
    "accuracy": lambda y, p, yhat: accuracy_score(y, yhat),
    "balanced_accuracy": lambda y, p, yhat: balanced_accuracy_score(y, yhat),
    "f1": lambda y, p, yhat: f1_score(y, yhat, zero_division=0),
    "precision": lambda y, p, yhat: precision_score(y, yhat, zero_division=0),
    "recall": lambda y, p, yhat: recall_score(y, yhat, zero_division=0),
    "log_loss": lambda y, p, yhat: log_loss(y, p, labels=[0, 1]),
    "brier": lambda y, p, yhat: brier_score_loss(y, p),
}


class Evaluator:
    """Scores the final model on the held-out test set, once.

    ROC-AUC is always reported; other metrics are added from ``METRICS``.
    Class predictions use a 0.5 probability threshold.
    """

    def __init__(
        self,
        metrics: Sequence[str] = ("roc_auc", "accuracy"),
        metrics_path: Optional[str] = None,
        figures_dir: Optional[str] = None,
        threshold: float = 0.5,
        verbose: bool = True,
    ):
        unknown = [name for name in metrics if name not in METRICS]
        if unknown:
            raise InvalidParameterError(
                f"Unknown metrics {unknown}; choose from {sorted(METRICS)}", stage="evaluate"
            )
        self.metrics = ["roc_auc"] + [name for name in metrics if name != "roc_auc"]
        self.metrics_path = metrics_path
        self.figures_dir = figures_dir
        self.threshold = threshold
        self.verbose = verbose
        self.logger = get_logger(self.__class__.__name__)

    def _plot_confusion_matrix(self, y_true: np.ndarray, y_pred: np.ndarray, normalize: bool = True) -> str:
        """Plot confusion matrix and save to figures_dir. Returns saved path."""
        cm = confusion_matrix(y_true, y_pred, labels=[0, 1])

        if normalize:
            cm = cm.astype(float)
            row_sums = cm.sum(axis=1, keepdims=True)
            row_sums[row_sums == 0] = 1.0
            cm = cm / row_sums

        plt.figure(figsize=(6, 5))
        sns.heatmap(
            cm,
            annot=True,
            fmt=".2f" if normalize else "d",
            cmap="Blues",
            xticklabels=["Survived", "Died"],
            yticklabels=["Survived", "Died"],
        )
        plt.xlabel("Predicted")
        plt.ylabel("Actual")
        plt.title("Test Confusion Matrix" + (" (Normalized)" if normalize else ""))

        os.makedirs(self.figures_dir, exist_ok=True)
        timestamp = time.strftime("%Y%m%d_%H%M%S")
        path = os.path.join(self.figures_dir, f"confusion_matrix_{timestamp}.png")

        plt.tight_layout()
        plt.savefig(path, dpi=200)
        plt.close()

        if self.verbose:
            self.logger.info(f"Saved confusion matrix: {path}")

        return path

    def evaluate(self, model: FinalModel, test_df: pd.DataFrame) -> Dict[str, float]:
        """Compute test metrics, store them on the model and optionally save JSON + figure."""
        if model.test_metrics_ is not None:
            raise RuntimeError("This model has already been evaluated on the test set.")

        y_true = labels(test_df)
        if len(np.unique(y_true)) < 2:
            raise DataIntegrityError("Test set contains a single outcome class", stage="evaluate")

        y_proba = model.predict_proba(test_df)[PROBA_COLUMNS[1]].to_numpy()
        y_pred = (y_proba > self.threshold).astype(int)

        metrics: Dict[str, float] = {
            name: float(METRICS[name](y_true, y_proba, y_pred)) for name in self.metrics
        }
        model.test_metrics_ = metrics

        if self.metrics_path:
            os.makedirs(os.path.dirname(self.metrics_path) or ".", exist_ok=True)
            with open(self.metrics_path, "w") as f:
                json.dump({"penalty": model.penalty, **metrics}, f, indent=4)
            if self.verbose:
                self.logger.info(f"Saved metrics: {self.metrics_path}")

        if self.figures_dir:
            self._plot_confusion_matrix(y_true, y_pred, normalize=True)

        return metrics
