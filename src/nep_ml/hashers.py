# src/nep_ml/hashers.py
from __future__ import annotations
import hashlib
from typing import Sequence
import pandas as pd

LABEL_COL = "__label__"


def _normalize(frame: pd.DataFrame, labels: Sequence[str]) -> pd.DataFrame:
    """
    Canonicalize so the same training data => same bytes.
    - Attach the label column, keep row order (label encoding depends on it).
    - Round floats so float noise below 1e-9 does not change the digest.
    - Cast to string with stable NA marker.
    """
    key_df = frame.copy()
    key_df[LABEL_COL] = list(labels)
    num_cols = key_df.columns.drop(LABEL_COL)
    key_df[num_cols] = key_df[num_cols].astype("float64").round(9)
    return key_df.fillna("__NA__").astype(str)


def training_data_hash(frame: pd.DataFrame, labels: Sequence[str]) -> str:
    """
    Stable md5 digest over the feature frame plus the labels.
    """
    if frame is None or frame.empty:
        return hashlib.md5(b"EMPTY").hexdigest()

    key_df = _normalize(frame, labels)
    # Join row-wise with separators to avoid accidental collisions
    payload_rows = ["|".join(row) for row in key_df.to_numpy().tolist()]
    payload = ("\n".join(payload_rows)).encode("utf-8")
    return hashlib.md5(payload).hexdigest()
