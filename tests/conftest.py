# tests/conftest.py
"""
Global pytest fixtures for nasality tests.
"""

import logging

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from nasality.util.commonUtil import FEATURES, label_edges, select_edges

NASAL_PHONES = ["m", "n", "M", "N"]
ORAL_PHONES = ["l", "s", "D", "R", "p", "T"]


def make_measurements(n_vowels=400, seed=0):
    """Synthetic vowel table: nine samples per vowel, nasal edges shifted in a1p0 and bandwidth1."""
    rng = np.random.default_rng(seed)
    rows = []
    for vowel in range(n_vowels):
        preceding = rng.choice(NASAL_PHONES + ORAL_PHONES)
        following = rng.choice(NASAL_PHONES + ORAL_PHONES)
        language = "e" if vowel % 2 == 0 else "s"
        for timestamp in range(10, 100, 10):
            nasal_pull = 0.0
            if following in NASAL_PHONES:
                nasal_pull += timestamp / 90.0
            if preceding in NASAL_PHONES:
                nasal_pull += (100 - timestamp) / 90.0
            row = {
                "timestamp": timestamp,
                "preceding_phone": preceding,
                "following_phone": following,
                "language": language,
            }
            for feature in FEATURES:
                row[feature] = rng.normal(0.0, 1.0)
            row["a1p0"] -= 4.0 * nasal_pull
            row["bandwidth1"] += 3.0 * nasal_pull
            rows.append(row)
    return pd.DataFrame(rows)


@pytest.fixture
def measurements():
    return make_measurements()


@pytest.fixture
def small_measurements():
    return make_measurements(n_vowels=40, seed=3)


@pytest.fixture
def labelled_edges(measurements):
    return label_edges(select_edges(measurements))


@pytest.fixture
def parquet_file(tmp_path, measurements):
    path = tmp_path / "condensed.parquet"
    measurements.to_parquet(path, index=False)
    return path


@pytest.fixture
def logger():
    return logging.getLogger("nasality-tests")


@pytest.fixture(scope="session")
def trained_model():
    """One fitted classifier shared by the scoring and importance tests."""
    from nasality.train import model_train

    edges = label_edges(select_edges(make_measurements(seed=11)))
    return model_train(edges, logging.getLogger("nasality-tests"), random_state=1)
