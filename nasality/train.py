import logging
from typing import Dict, Optional

import numpy as np
import pandas as pd
import xgboost as xgb
from sklearn.metrics import accuracy_score, log_loss
from sklearn.model_selection import GridSearchCV, StratifiedKFold

from nasality.util.commonUtil import FEATURES
from nasality.util.logUtil import log_block

# Cross-validated offline, then nrounds turned down so the lab runs in minutes.
XGB_PARAMS = {
    "objective": "binary:logistic",
    "eval_metric": "logloss",
    "learning_rate": 0.05,
    "min_child_weight": 1,
    "max_depth": 7,
    "subsample": 0.7,
    "colsample_bytree": 0.9,
    "n_estimators": 100,
}

TUNING_GRID = {
    "max_depth": [3, 5, 7],
    "learning_rate": [0.05, 0.1],
    "n_estimators": [100, 200],
}


def build_classifier(random_state, **overrides) -> xgb.XGBClassifier:
    params = dict(XGB_PARAMS)
    params.update(overrides)
    return xgb.XGBClassifier(random_state=random_state, **params)


def _check_training_classes(y: pd.Series) -> None:
    classes = sorted(y.unique().tolist())
    if classes != [0, 1]:
        raise ValueError(
            f"training edges need both nasal and oral examples, got outcome classes {classes}"
        )


def model_train(
    train_df: pd.DataFrame,
    logger: logging.Logger,
    random_state: int,
    params: Optional[Dict[str, object]] = None,
) -> xgb.XGBClassifier:
    logger.info("=========Training nasality classifier===================")
    # 1. features and label
    x_train = train_df[FEATURES]
    y_train = train_df["outcome"].astype(int)
    _check_training_classes(y_train)

    # 2. fit
    model = build_classifier(random_state, **(params or {}))
    model.fit(x_train, y_train)

    # 3. in-sample fit, only as a sanity check
    proba = model.predict_proba(x_train)[:, 1]
    log_block(
        logger,
        "🌲 Classifier fitted",
        [
            f"training edges: {len(train_df)}",
            f"nasal share: {y_train.mean():.3f}",
            f"train logloss: {log_loss(y_train, proba, labels=[0, 1]):.4f}",
            f"train accuracy: {accuracy_score(y_train, (proba > 0.5).astype(int)):.4f}",
        ],
    )
    return model


def feature_importance(model: xgb.XGBClassifier) -> pd.DataFrame:
    """Share of total gain per feature, normalised to sum to 1. Unused features get 0."""
    booster = model.get_booster()
    gains = booster.get_score(importance_type="total_gain")
    names = booster.feature_names or FEATURES
    gain = np.array([gains.get(name, 0.0) for name in names], dtype=float)
    total = gain.sum()
    if total > 0:
        gain = gain / total
    importance = pd.DataFrame({"Feature": names, "Gain": gain})
    return importance.sort_values("Gain", ascending=False).reset_index(drop=True)


def tune_hyperparameters(
    train_df: pd.DataFrame,
    logger: logging.Logger,
    random_state: int,
    cv_folds: int = 4,
    param_grid: Optional[Dict[str, list]] = None,
) -> Dict[str, object]:
    logger.info("=========Grid search with cross validation===================")
    x_train = train_df[FEATURES]
    y_train = train_df["outcome"].astype(int)
    _check_training_classes(y_train)

    # stratified folds keep the nasal/oral ratio of every fold equal to the whole
    cv = StratifiedKFold(n_splits=cv_folds, shuffle=True, random_state=random_state)
    cv_model = GridSearchCV(
        estimator=build_classifier(random_state),
        param_grid=param_grid or TUNING_GRID,
        scoring="neg_log_loss",
        cv=cv,
    )
    cv_model.fit(x_train, y_train)
    log_block(
        logger,
        "🔎 Grid search finished",
        [
            f"candidates tested: {len(cv_model.cv_results_['params'])}",
            f"best mean logloss: {-cv_model.best_score_:.4f}",
            f"best params: {cv_model.best_params_}",
        ],
    )
    return dict(cv_model.best_params_)
