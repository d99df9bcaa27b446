# src/train.py
from __future__ import annotations
from dataclasses import dataclass

import pandas as pd

from config import AppConfig, FEATURE_SETS
from features import LABEL, derive_features, select_regions, split
from naive_bayes import NaiveBayesModel, fit
from preprocess import clean


@dataclass(frozen=True)
class TrainResult:
    model: NaiveBayesModel
    train_df: pd.DataFrame
    test_df: pd.DataFrame
    counts: dict


def train_model(cfg: AppConfig, feature_set_name: str, listings: pd.DataFrame) -> TrainResult:
    """
    clean → 特徴量 → 層化分割 → 学習。seedと設定は全部cfgから渡す
    """
    if feature_set_name not in FEATURE_SETS:
        raise ValueError(f"Unknown feature set: {feature_set_name}")
    feature_set = FEATURE_SETS[feature_set_name]

    cleaned = clean(listings)
    subset = select_regions(cleaned, cfg.regions)
    if subset.empty:
        raise ValueError(f"No listings in regions {list(cfg.regions or [])}")

    frame = derive_features(subset, feature_set)
    if frame.empty:
        raise ValueError(f"No listings with complete features for {feature_set_name}: {list(feature_set)}")

    train_df, test_df = split(frame, cfg.random_state, cfg.train_fraction)
    if len(train_df) < 100 or len(test_df) < 30:
        print(f"[WARN] small split sizes: train={len(train_df)}, test={len(test_df)}")

    # 指定した地域はすべて学習データに必要（行がなければfitでエラー）
    classes = list(cfg.regions) if cfg.regions is not None else sorted(frame[LABEL].unique())
    model = fit(
        train_df,
        feature_set,
        classes=classes,
        variance_floor=cfg.variance_floor,
        smoothing=cfg.smoothing,
    )

    counts = {
        "raw": int(len(listings)),
        "cleaned": int(len(cleaned)),
        "regions": int(len(subset)),
        "features": int(len(frame)),
        "train": int(len(train_df)),
        "test": int(len(test_df)),
    }
    return TrainResult(model=model, train_df=train_df, test_df=test_df, counts=counts)
