import os
import tempfile

import numpy as np
import pandas as pd
import requests

DATASET_URL = "https://github.com/julian-vargo/nasalization-demo/raw/refs/heads/main/condensed.parquet"

# lowercase is Spanish, uppercase is English (ARPAbet)
NASALS = ("m", "n", "ɲ", "ŋ", "M", "N", "NG")
OBSTRUENTS = ("P", "T", "K", "p", "t", "k")

# formants are left out on purpose
FEATURES = [
    "f0", "bandwidth1", "bandwidth2", "bandwidth3", "harmonicity", "intensity",
    "cog", "cogSD", "skewness", "kurtosis", "a1p0",
]
PHONE_COLUMNS = ["timestamp", "preceding_phone", "following_phone", "language"]
REQUIRED_COLUMNS = PHONE_COLUMNS + FEATURES

EDGE_TIMESTAMPS = (10, 90)
LANGUAGES = {"e": "english", "s": "spanish"}
ENVIRONMENTS = ("N_N", "C_N", "N_C", "C_C")

PREDICTION_FRACTION = 0.2
TRAIN_FRACTION = 0.75  # of what is left after the prediction draw


def fetch_dataset(url=DATASET_URL, timeout=60):
    """
    1. Stream the parquet file into a temporary file
    2. Read it into a DataFrame
    3. Remove the temporary file
    :param url: https location of the parquet file
    :param timeout: seconds before the request is abandoned
    :return: DataFrame
    """
    fd, tmp = tempfile.mkstemp(suffix=".parquet")
    os.close(fd)
    try:
        with requests.get(url, timeout=timeout, stream=True) as response:
            response.raise_for_status()
            with open(tmp, "wb") as f:
                for chunk in response.iter_content(chunk_size=8192):
                    f.write(chunk)
        df = pd.read_parquet(tmp)
    finally:
        os.remove(tmp)
    return df


def check_columns(df):
    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise ValueError(f"dataset is missing required columns: {', '.join(missing)}")


def load_dataset(path=None, url=DATASET_URL):
    """
    Read a manually downloaded parquet when a path is given, otherwise
    fetch it. timestamp is coerced to numeric so the edge filters compare
    numbers, not strings.
    :param path: local parquet file or None
    :param url: used only when path is None
    :return: DataFrame
    """
    if path is not None:
        df = pd.read_parquet(path)
    else:
        df = fetch_dataset(url)
    check_columns(df)
    df = df.reset_index(drop=True)
    df["timestamp"] = pd.to_numeric(df["timestamp"])
    return df


def drop_obstruents(df):
    """Sonorant-only view: no obstruent on either side of the vowel."""
    keep = ~df["preceding_phone"].isin(OBSTRUENTS) & ~df["following_phone"].isin(OBSTRUENTS)
    return df.loc[keep]


def is_nasal(phones):
    return phones.isin(NASALS)


def split_partitions(df, random_state):
    """
    Fixed 20/60/20 random split into prediction, training and validation
    rows. Partitions are drawn by index so duplicate measurement rows stay
    in whichever partition they were drawn into.
    :return: (prediction_df, train_df, validate_df)
    """
    if not df.index.is_unique:
        df = df.reset_index(drop=True)
    prediction_df = df.sample(frac=PREDICTION_FRACTION, random_state=random_state)
    train_validate_df = df.drop(index=prediction_df.index)
    train_df = train_validate_df.sample(frac=TRAIN_FRACTION, random_state=random_state)
    validate_df = train_validate_df.drop(index=train_df.index)
    return prediction_df, train_df, validate_df


def select_edges(df):
    """
    Only the 10% and 90% points of the vowel are ground truth, and only
    for vowels whose neighbours agree (both nasal or both not).
    """
    preceding = is_nasal(df["preceding_phone"])
    following = is_nasal(df["following_phone"])
    at_edge = df["timestamp"].isin(EDGE_TIMESTAMPS)
    agreeing = (preceding & following) | (~preceding & ~following)
    return df.loc[at_edge & agreeing]


def label_edges(df):
    """
    outcome is 1 when the edge sample touches a nasal:
    90% point before a nasal, or 10% point after one.
    """
    labelled = df.copy()
    preceding = is_nasal(labelled["preceding_phone"])
    following = is_nasal(labelled["following_phone"])
    nasal_edge = (following & (labelled["timestamp"] == 90)) | (preceding & (labelled["timestamp"] == 10))
    labelled["outcome"] = nasal_edge.astype(int)
    return labelled


def add_environment(df):
    """N_N, C_N, N_C or C_C, written preceding_following."""
    out = df.copy()
    preceding = np.where(is_nasal(out["preceding_phone"]), "N", "C")
    following = np.where(is_nasal(out["following_phone"]), "N", "C")
    out["environment"] = pd.Series(preceding, index=out.index) + "_" + pd.Series(following, index=out.index)
    return out


def add_env_lang(df):
    """Language and environment folded into one factor, e.g. 'spanish C_N'."""
    out = df if "environment" in df.columns else add_environment(df)
    out = out.copy()
    language = out["language"].astype(str).map(LANGUAGES)
    out["env_lang"] = (language + " " + out["environment"]).where(language.notna())
    return out
