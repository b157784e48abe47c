import numpy as np
import pandas as pd
import pytest

from heart_failure.exceptions import DataIntegrityError, SchemaError
from heart_failure.feature_preparer import FeaturePreparer
from heart_failure.schema import PREDICTORS, TARGET


def test_feature_preparer_selects_and_renames_columns(raw_df):
    out = FeaturePreparer().transform(raw_df)

    assert list(out.columns) == PREDICTORS + [TARGET]
    assert "serum_sodium" not in out.columns
    assert len(out) == len(raw_df)


def test_feature_preparer_matches_columns_case_insensitively(raw_df):
    shouted = raw_df.rename(columns=str.upper)
    out = FeaturePreparer(target_col="DEATH_EVENT").transform(shouted)

    assert list(out.columns) == PREDICTORS + [TARGET]


def test_feature_preparer_recodes_sex(raw_df):
    out = FeaturePreparer().transform(raw_df)

    expected = raw_df["sex"].map({0: "F", 1: "M"}).tolist()
    assert out["sex"].astype(str).tolist() == expected
    assert list(out["sex"].cat.categories) == ["F", "M"]


def test_feature_preparer_casts_binary_fields_to_ordered_levels(raw_df):
    out = FeaturePreparer().transform(raw_df)

    for col in ["death", "smoking", "anaemia", "diabetes", "high_blood_pressure"]:
        assert isinstance(out[col].dtype, pd.CategoricalDtype)
        assert list(out[col].cat.categories) == ["0", "1"]
    assert (out["death"] == "1").sum() == raw_df["DEATH_EVENT"].sum()


def test_feature_preparer_keeps_levels_when_one_is_absent(raw_df):
    only_survivors = raw_df.assign(smoking=0)
    out = FeaturePreparer().transform(only_survivors)

    assert list(out["smoking"].cat.categories) == ["0", "1"]


def test_feature_preparer_missing_column_raises_schema_error(raw_df):
    with pytest.raises(SchemaError) as excinfo:
        FeaturePreparer().transform(raw_df.drop(columns=["ejection_fraction", "time"]))

    assert "ejection_fraction" in str(excinfo.value)
    assert excinfo.value.stage == "prepare"


def test_feature_preparer_missing_target_raises_schema_error(raw_df):
    with pytest.raises(SchemaError):
        FeaturePreparer(target_col="outcome").transform(raw_df)


def test_feature_preparer_rejects_unknown_sex_code(raw_df):
    bad = raw_df.copy()
    bad.loc[3, "sex"] = 2

    with pytest.raises(DataIntegrityError, match="sex"):
        FeaturePreparer().transform(bad)


def test_feature_preparer_rejects_non_binary_flag(raw_df):
    bad = raw_df.copy()
    bad.loc[0, "diabetes"] = 3

    with pytest.raises(DataIntegrityError, match="diabetes"):
        FeaturePreparer().transform(bad)


def test_feature_preparer_rejects_missing_values(raw_df):
    bad = raw_df.astype({"platelets": float})
    bad.loc[5, "platelets"] = np.nan

    with pytest.raises(DataIntegrityError, match="platelets"):
        FeaturePreparer().transform(bad)


def test_feature_preparer_rejects_negative_numeric(raw_df):
    bad = raw_df.copy()
    bad.loc[0, "time"] = -4

    with pytest.raises(DataIntegrityError, match="time"):
        FeaturePreparer().transform(bad)


def test_feature_preparer_does_not_mutate_input(raw_df):
    before = raw_df.copy(deep=True)
    _ = FeaturePreparer().transform(raw_df)
    pd.testing.assert_frame_equal(raw_df, before)
