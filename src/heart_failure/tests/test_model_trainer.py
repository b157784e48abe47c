import numpy as np
import pytest

from heart_failure.exceptions import InvalidParameterError
from heart_failure.model_trainer import LassoSpec, ModelTrainer, labels
from heart_failure.preprocessor import PipelineSpec
from heart_failure.schema import PROBA_COLUMNS


@pytest.fixture
def trainer() -> ModelTrainer:
    return ModelTrainer(LassoSpec(), PipelineSpec())


def test_inverse_strength_follows_glmnet_scaling():
    assert LassoSpec.inverse_strength(0.01, 200) == pytest.approx(0.5)
    assert LassoSpec.inverse_strength(0.0, 200) == pytest.approx(1e12)


def test_negative_penalty_is_rejected():
    with pytest.raises(InvalidParameterError):
        LassoSpec.inverse_strength(-0.1, 100)


@pytest.mark.parametrize("mixture", [-0.1, 1.5])
def test_mixture_outside_unit_interval_is_rejected(mixture):
    with pytest.raises(InvalidParameterError):
        LassoSpec(mixture=mixture)


def test_build_uses_pure_l1_by_default():
    model = LassoSpec().build(0.01, 100, random_state=7)

    assert model.penalty == "l1"
    assert model.solver == "liblinear"
    assert model.C == pytest.approx(1.0)
    assert model.random_state == 7


def test_build_elastic_net_when_mixture_below_one():
    model = LassoSpec(mixture=0.5).build(0.01, 100)

    assert model.penalty == "elasticnet"
    assert model.l1_ratio == 0.5


def test_fit_score_returns_valid_auc(trainer, train_test):
    train, test = train_test
    auc, status = trainer.fit_score(train, test, penalty=1e-3, random_state=1)

    assert status == "ok"
    assert 0.5 < auc <= 1.0


def test_fit_score_flags_constant_predictions(trainer, train_test):
    train, test = train_test
    auc, status = trainer.fit_score(train, test, penalty=1.0)

    assert status == "degenerate"
    assert np.isnan(auc)


def test_fit_score_flags_unconverged_fit(train_test):
    train, test = train_test
    trainer = ModelTrainer(LassoSpec(max_iter=1, tol=1e-12), PipelineSpec())

    auc, status = trainer.fit_score(train, test, penalty=1e-6)

    assert status == "not_converged"
    assert np.isnan(auc)


def test_fit_score_flags_single_class_validation(trainer, train_test):
    train, test = train_test
    survivors = test[test["death"] == "0"]
    auc, status = trainer.fit_score(train, survivors, penalty=1e-3)

    assert status == "single_class"
    assert np.isnan(auc)


def test_fit_score_flags_single_class_training(trainer, train_test):
    train, test = train_test
    survivors = train[train["death"] == "0"]
    auc, status = trainer.fit_score(survivors, test, penalty=1e-3)

    assert status == "error"
    assert np.isnan(auc)


def test_final_model_probabilities_sum_to_one(trainer, train_test):
    train, test = train_test
    final = trainer.fit_final(train, penalty=1e-3, random_state=1)
    proba = final.predict_proba(test)

    assert list(proba.columns) == PROBA_COLUMNS
    assert len(proba) == len(test)
    np.testing.assert_allclose(proba.sum(axis=1), 1.0, atol=1e-12)
    assert final.predict(test).isin(["0", "1"]).all()


def test_final_model_importances_are_ranked_with_signs(trainer, train_test):
    train, _ = train_test
    final = trainer.fit_final(train, penalty=1e-3, random_state=1)
    table = final.importances()

    assert list(table.columns) == ["feature", "importance", "sign"]
    assert sorted(table["feature"]) == sorted(final.feature_names)
    assert table["importance"].is_monotonic_decreasing

    coef = dict(zip(final.feature_names, final.estimator.coef_[0]))
    for row in table.itertuples():
        assert row.importance == pytest.approx(abs(coef[row.feature]))
        assert row.sign == int(np.sign(coef[row.feature]))

    # synthetic outcome rises with creatinine and falls with ejection fraction
    assert coef["serum_creatinine"] > 0
    assert coef["ejection_fraction"] < 0


def test_strong_penalty_zeroes_coefficients(trainer, train_test):
    train, _ = train_test
    final = trainer.fit_final(train, penalty=1.0)

    assert np.all(final.importances()["importance"] == 0)
    assert (final.importances()["sign"] == 0).all()


def test_coefficients_table_includes_intercept(trainer, train_test):
    train, _ = train_test
    final = trainer.fit_final(train, penalty=1e-2)
    coefs = final.coefficients()

    assert coefs.loc[0, "term"] == "(Intercept)"
    assert len(coefs) == len(final.feature_names) + 1
    assert (coefs["penalty"] == 1e-2).all()


def test_labels_reads_death_levels(prepared_df):
    y = labels(prepared_df)

    assert set(np.unique(y)) == {0, 1}
    assert y.sum() == (prepared_df["death"] == "1").sum()
