# src/features.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence
import numpy as np
import pandas as pd

from preprocess import REGION_COL

LABEL = "region"


@dataclass(frozen=True)
class FeatureSpec:
    kind: str  # "numeric" | "categorical"
    log1p: bool = False


# 列ごとの型はここで一度だけ決める
FEATURES: dict[str, FeatureSpec] = {
    "price": FeatureSpec("numeric", log1p=True),
    "number_of_reviews": FeatureSpec("numeric", log1p=True),
    "reviews_per_month": FeatureSpec("numeric", log1p=True),
    "latitude": FeatureSpec("numeric"),
    "longitude": FeatureSpec("numeric"),
    "room_type": FeatureSpec("categorical"),
}


def feature_kind(name: str) -> str:
    if name not in FEATURES:
        raise KeyError(f"Unknown feature: {name}")
    return FEATURES[name].kind


def safe_log1p(s: pd.Series, name: str) -> pd.Series:
    negative = s < 0
    if negative.any():
        raise ValueError(f"log1p is undefined for negative {name}: {int(negative.sum())} rows")
    return np.log1p(s)


def select_regions(df: pd.DataFrame, regions: Optional[Iterable[str]]) -> pd.DataFrame:
    if regions is None:
        return df.copy()
    return df.loc[df[REGION_COL].isin(list(regions))].copy()


def derive_features(df: pd.DataFrame, feature_set: Sequence[str]) -> pd.DataFrame:
    """
    region列 + 選択した特徴量の表を作る。欠損のある行は落とす（補完しない）
    """
    for name in feature_set:
        feature_kind(name)
    out = pd.DataFrame({LABEL: df[REGION_COL]}, index=df.index)
    for name in feature_set:
        out[name] = df[name]
    out = out.dropna(subset=[LABEL, *feature_set])

    for name in feature_set:
        spec = FEATURES[name]
        if spec.kind == "numeric":
            col = out[name].astype("float64")
            out[name] = safe_log1p(col, name) if spec.log1p else col
        else:
            out[name] = out[name].astype(str)
    out[LABEL] = out[LABEL].astype(str)
    return out


def split(df: pd.DataFrame, seed: int, train_fraction: float):
    """
    地域ごとの層化分割（非復元）。乱数は地域名の昇順に消費する
    """
    if not 0.0 < train_fraction < 1.0:
        raise ValueError(f"train_fraction must be in (0, 1): {train_fraction}")
    rng = np.random.default_rng(seed)
    labels = df[LABEL].to_numpy()
    positions = np.arange(len(df))
    train_pos = []
    test_pos = []
    for cls in sorted(pd.unique(labels)):
        members = positions[labels == cls]
        perm = rng.permutation(len(members))
        n_train = int(np.floor(len(members) * train_fraction + 0.5))
        train_pos.append(members[perm[:n_train]])
        test_pos.append(members[perm[n_train:]])

    train_idx = np.sort(np.concatenate(train_pos)) if train_pos else np.array([], dtype=int)
    test_idx = np.sort(np.concatenate(test_pos)) if test_pos else np.array([], dtype=int)
    return df.iloc[train_idx].copy(), df.iloc[test_idx].copy()
