import os
from dataclasses import dataclass
from textwrap import indent
from typing import Any, Optional, Union

import pandas as pd

from .config import Config
from .data_loader import DataLoader
from .evaluator import Evaluator
from .exceptions import InvalidParameterError, PipelineError
from .feature_preparer import FeaturePreparer
from .hyper_tuner import HyperTuner, TuningResult, penalty_grid
from .model_trainer import FinalModel, LassoSpec, ModelTrainer
from .preprocessor import PipelineSpec
from .schema import TARGET
from .selector import select_best, show_best
from .splitter import DataSplitter
from .utils.logger import get_logger, set_level


@dataclass
class RunResult:
    tuning: TuningResult
    best_penalty: float
    model: FinalModel
    metrics: dict[str, float]
    importances: pd.DataFrame
    predictions: pd.DataFrame


class PipelineRunner:
    """End-to-end heart-failure mortality pipeline.

    Steps:
      1. Load the patient table (CSV or warehouse query)
      2. Select, rename and recode the modelling columns
      3. Split into training and test sets, then build CV folds on training
      4. Tune the LASSO penalty over a regular log-spaced grid by CV ROC-AUC
      5. Select the best penalty (ties go to the larger penalty)
      6. Refit pipeline + model on the full training set
      7. Evaluate once on the test set
      8. Save tuning table, importances, test predictions and metrics"""

    def __init__(self, config: Union[str, Config], connection: Any = None):
        self.config = config if isinstance(config, Config) else Config.from_yaml(config)
        self.connection = connection
        self.logger = get_logger(self.__class__.__name__)
        if "level" in self.config.logging:
            set_level(self.config.logging["level"])

    @staticmethod
    def _save_csv(df: pd.DataFrame, path: Optional[str]) -> None:
        if not path:
            return
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        df.to_csv(path, index=False)

    def run(self) -> RunResult:
        try:
            return self._run()
        except PipelineError as exc:
            self.logger.error(f"Pipeline stopped at stage '{exc.stage}': {exc.message}")
            raise

    def _run(self) -> RunResult:
        cfg = self.config
        self.logger.info("Starting heart-failure LASSO pipeline")

        seed = cfg.validation["seed"]
        n_folds = cfg.validation.get("n_folds", 10)
        if n_folds < 2:
            raise InvalidParameterError(
                f"Fold count must be at least 2, got {n_folds}", stage="split"
            )
        splitter = DataSplitter(seed=seed, proportion=cfg.validation.get("split_prop", 0.75))
        evaluator = Evaluator(
            metrics=cfg.validation.get("metrics", ["roc_auc", "accuracy"]),
            metrics_path=cfg.output.get("metrics_path"),
            figures_dir=(
                cfg.output.get("figures_dir")
                if cfg.output.get("plot_confusion_matrix", False) else None
            ),
        )
        grid = penalty_grid(
            levels=cfg.model.get("levels", 50),
            log10_range=cfg.model.get("log10_penalty_range", (-10.0, 0.0)),
        )
        model_spec = LassoSpec(
            mixture=cfg.model.get("mixture", 1.0),
            max_iter=cfg.model.get("max_iter", 1000),
            tol=cfg.model.get("tol", 1e-4),
            intercept_scaling=cfg.model.get("intercept_scaling", 10.0),
        )
        pipeline_spec = PipelineSpec(dummy_drop=cfg.preprocessing.get("dummy_drop", "first"))
        trainer = ModelTrainer(model_spec, pipeline_spec)

        loader = DataLoader(
            path=cfg.data.get("path"),
            sample_size=cfg.data.get("sample_size"),
            query=cfg.data.get("query"),
            connection=self.connection,
        )
        raw = loader.load()
        df = FeaturePreparer(target_col=cfg.data.get("target_col", "death_event")).transform(raw)

        train, test = splitter.split(df)
        folds = splitter.make_folds(train, n_folds)

        tuner = HyperTuner(trainer, n_jobs=cfg.validation.get("n_jobs", 1), seed=seed)
        tuning = tuner.tune(train, folds, grid)
        self._save_csv(tuning.summary(), cfg.output.get("tuning_path"))

        best_penalty = select_best(tuning)
        top = show_best(tuning, n=5)
        self.logger.info(
            f"Selected penalty {best_penalty:.4g}; top candidates:\n"
            + indent(top.to_string(index=False), " " * 4)
        )

        final = trainer.fit_final(train, best_penalty, random_state=seed)

        metrics = evaluator.evaluate(final, test)
        metrics_str = indent("\n".join(f"{k}: {v:.4f}" for k, v in metrics.items()), " " * 4)
        self.logger.info(f"Test metrics:\n{metrics_str}")

        importances = final.importances()
        self._save_csv(importances, cfg.output.get("importances_path"))
        self.logger.info(
            "Top features:\n" + indent(importances.head(5).to_string(index=False), " " * 4)
        )

        predictions = pd.concat(
            [test[[TARGET]].astype(str), final.predict(test), final.predict_proba(test)], axis=1
        )
        self._save_csv(predictions, cfg.output.get("predictions_path"))

        self.logger.info("Pipeline finished")
        return RunResult(
            tuning=tuning,
            best_penalty=best_penalty,
            model=final,
            metrics=metrics,
            importances=importances,
            predictions=predictions,
        )
