# src/config.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional


# 分類器に渡す特徴量セット
FEATURE_SETS: dict[str, tuple[str, ...]] = {
    "price_reviews": ("price", "number_of_reviews"),
    "price_room_reviews": ("price", "room_type", "number_of_reviews"),
    "price_only": ("price",),
    "location": ("latitude", "longitude"),
}

DEFAULT_FEATURE_SETS: tuple[str, ...] = ("price_reviews", "price_room_reviews")


@dataclass(frozen=True)
class AppConfig:
    raw_data_path: str = "data/raw/listings.csv"

    # 層化分割：各地域の70%をtrain、残りをtest
    train_fraction: float = 0.70
    random_state: int = 42

    # 分散ゼロ対策とラプラス平滑化
    variance_floor: float = 1e-9
    smoothing: float = 1.0

    # Noneなら全地域を使う
    regions: Optional[tuple[str, ...]] = ("Brooklyn", "Manhattan", "Queens")

    feature_sets: tuple[str, ...] = DEFAULT_FEATURE_SETS

    def __post_init__(self) -> None:
        if not 0.0 < self.train_fraction < 1.0:
            raise ValueError(f"train_fraction must be in (0, 1): {self.train_fraction}")
        if self.variance_floor <= 0:
            raise ValueError(f"variance_floor must be positive: {self.variance_floor}")
        if self.smoothing <= 0:
            raise ValueError(f"smoothing must be positive: {self.smoothing}")
        unknown = [name for name in self.feature_sets if name not in FEATURE_SETS]
        if unknown:
            raise ValueError(f"Unknown feature sets: {unknown}")
