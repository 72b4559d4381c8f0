# tests/test_train.py
"""
Tests for classifier fitting and feature importance.
"""

import pytest

from nasality.train import (
    XGB_PARAMS,
    build_classifier,
    feature_importance,
    model_train,
    tune_hyperparameters,
)
from nasality.util.commonUtil import FEATURES


class TestBuildClassifier:
    """Tests for the fixed booster configuration."""

    def test_fixed_hyperparameters(self):
        params = build_classifier(random_state=1).get_params()

        for name, value in XGB_PARAMS.items():
            assert params[name] == value
        assert params["random_state"] == 1

    def test_overrides_replace_defaults(self):
        params = build_classifier(random_state=1, max_depth=3).get_params()

        assert params["max_depth"] == 3
        assert params["learning_rate"] == 0.05


class TestModelTrain:
    """Tests for model_train."""

    def test_probabilities_in_unit_interval(self, trained_model, labelled_edges):
        proba = trained_model.predict_proba(labelled_edges[FEATURES])[:, 1]

        assert ((proba >= 0.0) & (proba <= 1.0)).all()

    def test_separates_synthetic_edges(self, trained_model, labelled_edges):
        pred = trained_model.predict(labelled_edges[FEATURES])

        assert (pred == labelled_edges["outcome"]).mean() > 0.9

    def test_single_class_is_rejected(self, labelled_edges, logger):
        oral_only = labelled_edges.loc[labelled_edges["outcome"] == 0]

        with pytest.raises(ValueError, match="both nasal and oral"):
            model_train(oral_only, logger, random_state=1)


class TestFeatureImportance:
    """Tests for normalised gain importance."""

    def test_covers_all_features(self, trained_model):
        importance = feature_importance(trained_model)

        assert sorted(importance["Feature"]) == sorted(FEATURES)
        assert importance["Gain"].sum() == pytest.approx(1.0)
        assert importance["Gain"].is_monotonic_decreasing

    def test_matches_share_of_total_gain(self, trained_model):
        total_gain = trained_model.get_booster().get_score(importance_type="total_gain")
        grand_total = sum(total_gain.values())

        importance = feature_importance(trained_model).set_index("Feature")["Gain"]

        for name in FEATURES:
            assert importance[name] == pytest.approx(total_gain.get(name, 0.0) / grand_total)

    def test_informative_features_rank_first(self, trained_model):
        top_two = set(feature_importance(trained_model)["Feature"].head(2))

        assert top_two & {"a1p0", "bandwidth1"}


class TestTuneHyperparameters:
    """Tests for the optional grid search."""

    def test_returns_best_params_from_grid(self, labelled_edges, logger):
        grid = {"max_depth": [2, 4], "n_estimators": [20]}

        best = tune_hyperparameters(labelled_edges, logger, random_state=1, cv_folds=3, param_grid=grid)

        assert set(best) == {"max_depth", "n_estimators"}
        assert best["max_depth"] in (2, 4)
        assert best["n_estimators"] == 20
