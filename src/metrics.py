from __future__ import annotations
from typing import Sequence
import numpy as np
import pandas as pd


def confusion_matrix(actual: pd.Series, predicted: pd.Series, classes: Sequence[str]) -> pd.DataFrame:
    """行 = 実際の地域, 列 = 予測した地域"""
    cm = pd.crosstab(
        pd.Series(actual, name="actual").reset_index(drop=True),
        pd.Series(predicted, name="predicted").reset_index(drop=True),
    )
    labels = list(classes)
    return cm.reindex(index=labels, columns=labels, fill_value=0).astype("int64")


def accuracy(cm: pd.DataFrame) -> float:
    # 対角成分はクラス数に関係なく全部足す
    total = int(cm.to_numpy().sum())
    if total == 0:
        return float("nan")
    return float(np.trace(cm.to_numpy())) / total
