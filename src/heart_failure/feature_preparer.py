import pandas as pd

from .exceptions import DataIntegrityError, SchemaError
from .schema import (
    BINARY_LEVELS,
    BINARY_PREDICTORS,
    NUMERIC_PREDICTORS,
    PREDICTORS,
    SEX_LEVELS,
    SOURCE_TARGET,
    TARGET,
)
from .utils.logger import get_logger


class FeaturePreparer:
    """Selects the modelling columns and recodes the categorical fields.

    Column names are matched case-insensitively. The output holds the
    predictors followed by the renamed ``death`` target; binary fields become
    categoricals with levels ``["0", "1"]`` and ``sex`` becomes ``["F", "M"]``.
    """

    def __init__(self, target_col: str = SOURCE_TARGET):
        self.target_col = target_col.lower()
        self.logger = get_logger(self.__class__.__name__)

    def _select(self, df: pd.DataFrame) -> pd.DataFrame:
        by_lower = {str(col).lower(): col for col in df.columns}
        required = PREDICTORS + [self.target_col]
        missing = [col for col in required if col not in by_lower]
        if missing:
            raise SchemaError(f"Missing required columns: {missing}")

        out = df[[by_lower[col] for col in required]].copy()
        out.columns = PREDICTORS + [TARGET]
        return out.reset_index(drop=True)

    @staticmethod
    def _check_integrity(df: pd.DataFrame) -> None:
        has_na = df.columns[df.isna().any()].tolist()
        if has_na:
            raise DataIntegrityError(f"Missing values in columns: {has_na}")

        non_numeric = [
            col for col in NUMERIC_PREDICTORS
            if not pd.api.types.is_numeric_dtype(df[col])
        ]
        if non_numeric:
            raise DataIntegrityError(f"Non-numeric values in columns: {non_numeric}")

        negative = [col for col in NUMERIC_PREDICTORS if (df[col] < 0).any()]
        if negative:
            raise DataIntegrityError(f"Negative values in columns: {negative}")

    @staticmethod
    def _as_binary(values: pd.Series, name: str) -> pd.Categorical:
        bad = values[~values.isin([0, 1])]
        if len(bad):
            raise DataIntegrityError(
                f"Column '{name}' must be 0/1, found {sorted(map(str, bad.unique()))}"
            )
        return pd.Categorical(values.astype(int).astype(str), categories=BINARY_LEVELS)

    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        out = self._select(df)
        self._check_integrity(out)

        bad_sex = out.loc[~out["sex"].isin(list(SEX_LEVELS)), "sex"]
        if len(bad_sex):
            raise DataIntegrityError(
                f"Column 'sex' must be 0/1, found {sorted(map(str, bad_sex.unique()))}"
            )
        out["sex"] = pd.Categorical(
            out["sex"].map(SEX_LEVELS), categories=list(SEX_LEVELS.values())
        )

        for col in BINARY_PREDICTORS + [TARGET]:
            out[col] = self._as_binary(out[col], col)

        self.logger.info(
            f"Prepared {len(out):,} records "
            f"({int((out[TARGET] == '1').sum())} deaths)"
        )
        return out
