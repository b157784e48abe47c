"""
Heart Failure Mortality — LASSO Feature-Importance Pipeline

This package predicts death events in heart-failure patient records with an
L1-regularized logistic regression, tunes the penalty by cross-validated
ROC-AUC, and reports which clinical variables carry the prediction.

Modules:
    config              — Load YAML configuration safely.
    data_loader         — Read the patient table from CSV or a warehouse query.
    feature_preparer    — Select, rename and recode the modelling columns.
    splitter            — Seeded train/test split and k-fold resampling.
    preprocessor        — Immutable PipelineSpec and per-fit FittedPipeline.
    model_trainer       — LASSO model spec, fold scoring and final refit.
    hyper_tuner         — Penalty grid search across folds.
    selector            — Choose the best penalty from tuning results.
    evaluator           — One-shot test-set metrics and confusion matrix.
    pipeline            — Orchestrates all components.
    utils.logger        — Unified timestamped console logger.
"""

from .config import Config
from .data_loader import DataLoader
from .evaluator import Evaluator
from .exceptions import (
    DataIntegrityError,
    InvalidParameterError,
    NoValidCandidateError,
    PipelineError,
    SchemaError,
)
from .feature_preparer import FeaturePreparer
from .hyper_tuner import FoldScore, HyperTuner, TuningResult, penalty_grid
from .model_trainer import FinalModel, LassoSpec, ModelTrainer
from .pipeline import PipelineRunner, RunResult
from .preprocessor import FittedPipeline, PipelineSpec
from .selector import select_best, show_best
from .splitter import DataSplitter, Fold

__all__ = [
    "Config",
    "DataLoader",
    "FeaturePreparer",
    "DataSplitter",
    "Fold",
    "PipelineSpec",
    "FittedPipeline",
    "LassoSpec",
    "ModelTrainer",
    "FinalModel",
    "HyperTuner",
    "TuningResult",
    "FoldScore",
    "penalty_grid",
    "select_best",
    "show_best",
    "Evaluator",
    "PipelineRunner",
    "RunResult",
    "PipelineError",
    "SchemaError",
    "DataIntegrityError",
    "InvalidParameterError",
    "NoValidCandidateError",
]
