from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd
from sklearn.model_selection import KFold, train_test_split

from .exceptions import InvalidParameterError
from .utils.logger import get_logger


@dataclass(frozen=True)
class Fold:
    """One resample: positional row indices into the training set."""
    index: int
    train_idx: np.ndarray
    val_idx: np.ndarray

    def training(self, df: pd.DataFrame) -> pd.DataFrame:
        return df.iloc[self.train_idx].reset_index(drop=True)

    def validation(self, df: pd.DataFrame) -> pd.DataFrame:
        return df.iloc[self.val_idx].reset_index(drop=True)


class DataSplitter:
    """Seeded train/test partition and k-fold resampling of the training set."""

    def __init__(self, seed: int, proportion: float = 0.75):
        if not 0.0 < proportion < 1.0:
            raise InvalidParameterError(
                f"Split proportion must be in (0, 1), got {proportion}", stage="split"
            )
        self.seed = seed
        self.proportion = proportion
        self.logger = get_logger(self.__class__.__name__)

    def split(self, df: pd.DataFrame) -> tuple[pd.DataFrame, pd.DataFrame]:
        n_train = int(np.floor(len(df) * self.proportion))
        if n_train == 0 or n_train == len(df):
            raise InvalidParameterError(
                f"Proportion {self.proportion} leaves an empty side for {len(df)} rows",
                stage="split",
            )

        train, test = train_test_split(
            df, train_size=n_train, random_state=self.seed, shuffle=True
        )
        self.logger.info(f"Split {len(df)} rows into {len(train)} train / {len(test)} test")
        return train.reset_index(drop=True), test.reset_index(drop=True)

    def make_folds(
        self, train: pd.DataFrame, k: int, seed: Optional[int] = None
    ) -> list[Fold]:
        if k < 2 or k > len(train):
            raise InvalidParameterError(
                f"Fold count must be between 2 and {len(train)}, got {k}", stage="split"
            )

        kf = KFold(
            n_splits=k,
            shuffle=True,
            random_state=self.seed if seed is None else seed,
        )
        folds = [
            Fold(index=i, train_idx=train_idx, val_idx=val_idx)
            for i, (train_idx, val_idx) in enumerate(kf.split(train))
        ]
        sizes = sorted({len(f.val_idx) for f in folds})
        self.logger.info(f"Built {k} folds (validation sizes {sizes})")
        return folds
