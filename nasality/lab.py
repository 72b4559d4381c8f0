"""
Nasality Lab
------------

Implementing vowel nasalization through acoustics. Loosely follows
Carignan et al. (2023) on Arabana (https://doi.org/10.16995/labphon.9152).

A run will:
    1. fetch the condensed Spanish/English measurement table,
    2. split it 20% prediction / 60% training / 20% validation,
    3. label the 10% and 90% vowel edges as nasal or oral,
    4. fit a gradient-boosted classifier on eleven non-formant features,
    5. score the prediction rows with P(nasal) and validate at 0.5,
    6. plot feature importance and nasalization tracks by environment.

Artifacts land under `<output-dir>/`:
    - data/*.csv, data/validation_report.json
    - figures/*.png
    - models/nasality_xgb.pkl
    - log/*.log
"""
from __future__ import annotations

import argparse
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import joblib
import pandas as pd
import seaborn as sns
import xgboost as xgb

from nasality.plots import plot_feature_importance, plot_tracks
from nasality.predict import ValidationReport, model_validate, score_partition
from nasality.train import feature_importance, model_train, tune_hyperparameters
from nasality.util.commonUtil import (
    DATASET_URL,
    add_env_lang,
    add_environment,
    drop_obstruents,
    label_edges,
    load_dataset,
    select_edges,
    split_partitions,
)
from nasality.util.logUtil import Logger, log_block

ARTIFACT_DIR = Path("artifacts")

RANDOM_STATE = 1
THRESHOLD = 0.5

TRACK_FIGURES = [
    # (group column, file name, title, legend title)
    ("following_phone", "tracks_following_phone.png", "Nasalization by following phone", "Following phone"),
    ("environment", "tracks_environment.png", "Nasalization by environment", "Environment"),
    (
        "env_lang",
        "tracks_env_lang.png",
        "Degree of Nasalization in Spanish and English Bilingual Vowels",
        "Language & Environment",
    ),
]


def probability(value: str) -> float:
    """argparse type: a float strictly between 0 and 1."""
    try:
        threshold = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}")
    if not 0.0 < threshold < 1.0:
        raise argparse.ArgumentTypeError(f"threshold must lie strictly between 0 and 1, got {threshold}")
    return threshold


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="nasality-lab",
        description="Predict vowel nasalization from acoustic features and plot nasalization tracks.",
    )
    parser.add_argument("--data", type=Path, default=None, help="local parquet file instead of downloading")
    parser.add_argument("--url", default=DATASET_URL, help="dataset location when --data is not given")
    parser.add_argument("--output-dir", type=Path, default=ARTIFACT_DIR)
    parser.add_argument("--seed", type=int, default=RANDOM_STATE)
    parser.add_argument("--sonorants-only", action="store_true", help="drop vowels next to P/T/K")
    parser.add_argument("--tune", action="store_true", help="grid-search the booster before the final fit")
    parser.add_argument("--threshold", type=probability, default=THRESHOLD)
    parser.add_argument("--no-plots", action="store_true")
    parser.add_argument("--log-level", default="info", choices=sorted(Logger.level_relations))
    return parser.parse_args(argv)


def prepare_partitions(df: pd.DataFrame, seed: int, logger: logging.Logger):
    prediction_df, train_df, validate_df = split_partitions(df, random_state=seed)
    train_edges = label_edges(select_edges(train_df))
    validate_edges = label_edges(select_edges(validate_df))
    log_block(
        logger,
        "✂️ Partitions ready",
        [
            f"prediction rows: {len(prediction_df)}",
            f"training rows: {len(train_df)} -> {len(train_edges)} labelled edges",
            f"validation rows: {len(validate_df)} -> {len(validate_edges)} labelled edges",
        ],
    )
    return prediction_df, train_edges, validate_edges


def persist_artifacts(
    output_dir: Path,
    model: xgb.XGBClassifier,
    prediction_df: pd.DataFrame,
    validated_df: pd.DataFrame,
    importance_df: pd.DataFrame,
    report: ValidationReport,
    logger: logging.Logger,
    plots: bool = True,
) -> Dict[str, Path]:
    data_dir = output_dir / "data"
    fig_dir = output_dir / "figures"
    model_dir = output_dir / "models"
    for directory in (data_dir, fig_dir, model_dir):
        directory.mkdir(parents=True, exist_ok=True)

    written: Dict[str, Path] = {
        "predictions": data_dir / "prediction_scored.csv",
        "validation": data_dir / "validation_scored.csv",
        "importance": data_dir / "feature_importance.csv",
        "report": data_dir / "validation_report.json",
        "model": model_dir / "nasality_xgb.pkl",
    }
    prediction_df.to_csv(written["predictions"], index=False)
    validated_df.to_csv(written["validation"], index=False)
    importance_df.to_csv(written["importance"], index=False)
    with open(written["report"], "w", encoding="utf-8") as fp:
        json.dump(report.to_dict(), fp, indent=2)
    joblib.dump(model, written["model"])

    if plots:
        written["importance_figure"] = fig_dir / "feature_importance.png"
        plot_feature_importance(importance_df, written["importance_figure"])
        for group_col, file_name, title, legend_title in TRACK_FIGURES:
            written[group_col] = fig_dir / file_name
            plot_tracks(
                prediction_df,
                group_col,
                written[group_col],
                title=title,
                legend_title=legend_title,
                logger=logger,
            )

    log_block(
        logger,
        "💾 Artifacts persisted",
        [f"{name}: {path}" for name, path in written.items()],
    )
    return written


def run(argv: Optional[List[str]] = None) -> Dict[str, Path]:
    args = parse_args(argv)
    output_dir: Path = args.output_dir
    output_dir.mkdir(parents=True, exist_ok=True)

    log_name = "nasality_" + datetime.now().strftime('%Y%m%d%H%M%S')
    logger = Logger(str(output_dir), log_name, level=args.log_level).get_logger()
    sns.set_theme(style="whitegrid")
    log_block(
        logger,
        "🚀 Nasality lab started",
        [
            f"source: {args.data or args.url}",
            f"random state: {args.seed}",
            f"output: {output_dir}",
        ],
    )
    try:
        df = load_dataset(path=args.data, url=args.url)
        if args.sonorants_only:
            df = drop_obstruents(df)
        logger.info(f"dataset shape: {df.shape}")

        prediction_df, train_edges, validate_edges = prepare_partitions(df, args.seed, logger)

        params = tune_hyperparameters(train_edges, logger, args.seed) if args.tune else None
        model = model_train(train_edges, logger, args.seed, params=params)
        importance_df = feature_importance(model)
        logger.info(f"feature importance:\n{importance_df}")

        prediction_df = add_env_lang(add_environment(score_partition(model, prediction_df)))
        validated_df, report = model_validate(model, validate_edges, logger, threshold=args.threshold)

        written = persist_artifacts(
            output_dir,
            model,
            prediction_df,
            validated_df,
            importance_df,
            report,
            logger,
            plots=not args.no_plots,
        )
        log_block(
            logger,
            "✅ Run complete",
            [
                f"validation accuracy: {report.accuracy:.4f}",
                f"top feature: {importance_df.iloc[0]['Feature']}",
            ],
        )
        return written
    except Exception as exc:
        logger.exception("❌ Run failed due to: %s", exc)
        raise


def main(argv: Optional[List[str]] = None) -> None:
    run(argv)


if __name__ == "__main__":
    main()
