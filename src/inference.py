from __future__ import annotations
from typing import Optional
import pandas as pd

from features import derive_features
from naive_bayes import NaiveBayesModel, predict, predict_proba
from preprocess import REGION_COL


def listing_vector(
    model: NaiveBayesModel,
    price: float,
    number_of_reviews: Optional[float] = None,
    room_type: Optional[str] = None,
    reviews_per_month: Optional[float] = None,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
) -> dict:
    """生の値からモデルの特徴量空間のベクトルを作る"""
    if price is None or price <= 0:
        raise ValueError("price must be positive")
    df = pd.DataFrame(
        {
            REGION_COL: ["?"],
            "price": [float(price)],
            "number_of_reviews": [number_of_reviews],
            "room_type": [room_type],
            "reviews_per_month": [reviews_per_month],
            "latitude": [latitude],
            "longitude": [longitude],
        }
    )
    missing = [f for f in model.features if df[f].isna().any()]
    if missing:
        raise ValueError(f"Missing inputs for features: {missing}")
    row = derive_features(df, model.features).iloc[0]
    return {f: row[f] for f in model.features}


def predict_listing(model: NaiveBayesModel, **inputs) -> tuple[str, dict[str, float]]:
    vector = listing_vector(model, **inputs)
    return predict(model, vector), predict_proba(model, vector)
