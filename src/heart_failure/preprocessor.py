from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd
from sklearn.compose import ColumnTransformer
from sklearn.preprocessing import OneHotEncoder, StandardScaler

from .exceptions import SchemaError
from .schema import NOMINAL_PREDICTORS, NUMERIC_PREDICTORS


@dataclass(frozen=True)
class PipelineSpec:
    """Immutable description of the preprocessing steps.

    Each call to :meth:`fit` builds a brand new ColumnTransformer, so a fitted
    artifact is never shared between folds or with the final fit.

    Parameters
    ----------
    nominal_cols:
        Columns expanded into dummy indicators.
    numeric_cols:
        Columns standardized to zero mean and unit variance.
    dummy_drop:
        Passed to ``OneHotEncoder(drop=...)``. ``"first"`` keeps k-1 indicators
        per nominal column; ``None`` keeps all k.
    """

    nominal_cols: tuple[str, ...] = tuple(NOMINAL_PREDICTORS)
    numeric_cols: tuple[str, ...] = tuple(NUMERIC_PREDICTORS)
    dummy_drop: Optional[str] = "first"

    @property
    def columns(self) -> list[str]:
        return list(self.numeric_cols) + list(self.nominal_cols)

    def build(self) -> ColumnTransformer:
        """Build (but do not fit) the preprocessing transformer."""
        encoder = OneHotEncoder(
            drop=self.dummy_drop,
            handle_unknown="ignore",
            sparse_output=False,
        )
        return ColumnTransformer(
            transformers=[
                ("num", StandardScaler(), list(self.numeric_cols)),
                ("cat", encoder, list(self.nominal_cols)),
            ],
            remainder="drop",
            verbose_feature_names_out=False,
        )

    def fit(self, df: pd.DataFrame) -> "FittedPipeline":
        transformer = self.build()
        transformer.fit(_require_columns(df, self.columns))
        return FittedPipeline(self, transformer)


class FittedPipeline:
    """A PipelineSpec fitted on one training subset."""

    def __init__(self, spec: PipelineSpec, transformer: ColumnTransformer):
        self.spec = spec
        self._transformer = transformer

    @property
    def feature_names(self) -> list[str]:
        return [str(name) for name in self._transformer.get_feature_names_out()]

    @property
    def means(self) -> pd.Series:
        scaler = self._transformer.named_transformers_["num"]
        return pd.Series(scaler.mean_.copy(), index=list(self.spec.numeric_cols))

    @property
    def scales(self) -> pd.Series:
        scaler = self._transformer.named_transformers_["num"]
        return pd.Series(scaler.scale_.copy(), index=list(self.spec.numeric_cols))

    @property
    def categories(self) -> dict[str, list[str]]:
        encoder = self._transformer.named_transformers_["cat"]
        return {
            col: [str(level) for level in levels]
            for col, levels in zip(self.spec.nominal_cols, encoder.categories_)
        }

    def transform(self, df: pd.DataFrame) -> np.ndarray:
        """Apply the fitted encoding and scaling; fitted statistics are never updated."""
        X = self._transformer.transform(_require_columns(df, self.spec.columns))
        return np.asarray(X, dtype=float)


def _require_columns(df: pd.DataFrame, columns: list[str]) -> pd.DataFrame:
    missing = [col for col in columns if col not in df.columns]
    if missing:
        raise SchemaError(f"Missing predictor columns: {missing}", stage="preprocess")
    return df[columns]
