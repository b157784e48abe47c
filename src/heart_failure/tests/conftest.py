import numpy as np
import pandas as pd
import pytest

from heart_failure.feature_preparer import FeaturePreparer
from heart_failure.splitter import DataSplitter


def make_records(n: int = 299, seed: int = 0) -> pd.DataFrame:
    """Synthetic patient table shaped like the heart-failure clinical records."""
    rng = np.random.default_rng(seed)
    age = rng.integers(40, 96, n)
    serum_creatinine = np.round(rng.lognormal(0.2, 0.4, n), 2)
    ejection_fraction = rng.integers(14, 81, n)
    time = rng.integers(4, 286, n)

    logit = (
        -1.0
        + 0.04 * (age - 60)
        - 0.05 * (ejection_fraction - 38)
        + 1.5 * (serum_creatinine - 1.4)
        - 0.015 * (time - 130)
    )
    death = (rng.random(n) < 1.0 / (1.0 + np.exp(-logit))).astype(int)

    return pd.DataFrame(
        {
            "age": age,
            "anaemia": rng.integers(0, 2, n),
            "creatinine_phosphokinase": rng.integers(23, 7861, n),
            "diabetes": rng.integers(0, 2, n),
            "ejection_fraction": ejection_fraction,
            "high_blood_pressure": rng.integers(0, 2, n),
            "platelets": np.round(np.clip(rng.normal(263000, 97000, n), 25000, None), 0),
            "serum_creatinine": serum_creatinine,
            "serum_sodium": rng.integers(113, 149, n),
            "sex": rng.integers(0, 2, n),
            "smoking": rng.integers(0, 2, n),
            "time": time,
            "DEATH_EVENT": death,
        }
    )


@pytest.fixture
def raw_df() -> pd.DataFrame:
    return make_records()


@pytest.fixture
def prepared_df(raw_df) -> pd.DataFrame:
    return FeaturePreparer().transform(raw_df)


@pytest.fixture
def train_test(prepared_df):
    return DataSplitter(seed=20231018, proportion=0.8).split(prepared_df)
