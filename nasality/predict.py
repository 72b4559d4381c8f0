import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

import pandas as pd
import xgboost as xgb
from sklearn.metrics import accuracy_score, classification_report, roc_auc_score

from nasality.util.commonUtil import FEATURES
from nasality.util.logUtil import log_block


@dataclass
class ValidationReport:
    threshold: float
    accuracy: float
    confusion: pd.DataFrame
    auc: Optional[float] = None
    report: str = ""
    support: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, object]:
        return {
            "threshold": self.threshold,
            "accuracy": self.accuracy,
            "auc": self.auc,
            "confusion_matrix": self.confusion.to_numpy().astype(int).tolist(),
            "support": self.support,
        }


def score_partition(model: xgb.XGBClassifier, df: pd.DataFrame) -> pd.DataFrame:
    """P(nasal) for every row, stored as outcome_probability."""
    scored = df.copy()
    scored["outcome_probability"] = model.predict_proba(df[FEATURES])[:, 1]
    return scored


def model_validate(
    model: xgb.XGBClassifier,
    validate_df: pd.DataFrame,
    logger: logging.Logger,
    threshold: float = 0.5,
):
    if not 0.0 < threshold < 1.0:
        raise ValueError(f"threshold must lie strictly between 0 and 1, got {threshold}")
    logger.info("=========Validating on held-out edges===================")

    validated = validate_df.copy()
    validated["pred_prob"] = model.predict_proba(validate_df[FEATURES])[:, 1]
    validated["pred_label"] = (validated["pred_prob"] > threshold).astype(int)

    y_true = validated["outcome"].astype(int)
    y_pred = validated["pred_label"]
    confusion = pd.crosstab(
        pd.Categorical(y_true, categories=[0, 1]),
        pd.Categorical(y_pred, categories=[0, 1]),
        rownames=["truth"],
        colnames=["pred"],
        dropna=False,
    )
    accuracy = float(accuracy_score(y_true, y_pred))
    # AUC is undefined with a single class
    auc = float(roc_auc_score(y_true, validated["pred_prob"])) if y_true.nunique() == 2 else None
    report = classification_report(y_true, y_pred, labels=[0, 1], target_names=["oral", "nasal"], zero_division=0)

    result = ValidationReport(
        threshold=threshold,
        accuracy=accuracy,
        confusion=confusion,
        auc=auc,
        report=report,
        support={"oral": int((y_true == 0).sum()), "nasal": int((y_true == 1).sum())},
    )
    log_block(
        logger,
        "🧾 Validation metrics",
        [
            f"rows: {len(validated)}",
            f"threshold: {threshold:.2f}",
            f"accuracy: {accuracy:.4f}",
            f"ROC-AUC: {auc:.4f}" if auc is not None else "ROC-AUC: n/a (one class)",
        ],
    )
    logger.info(f"\n{confusion}")
    logger.info(f"\n{report}")
    return validated, result
