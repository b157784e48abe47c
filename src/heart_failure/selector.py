import pandas as pd

from .exceptions import NoValidCandidateError
from .hyper_tuner import TuningResult


def show_best(result: TuningResult, n: int = 5) -> pd.DataFrame:
    """Top ``n`` penalty values by mean ROC-AUC; on ties the larger penalty ranks first."""
    summary = result.summary().dropna(subset=["mean"])
    return summary.sort_values(
        ["mean", "penalty"], ascending=[False, False], kind="mergesort"
    ).head(n).reset_index(drop=True)


def select_best(result: TuningResult) -> float:
    """Penalty with the highest mean ROC-AUC.

    Exact ties go to the larger penalty, i.e. the sparser model.
    """
    best = show_best(result, n=1)
    if best.empty:
        raise NoValidCandidateError(
            f"None of the {len(result)} penalty values produced a valid ROC-AUC"
        )
    return float(best.loc[0, "penalty"])
