from __future__ import annotations
import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from preprocess import REGION_COL

CORR_COLUMNS = ["latitude", "longitude", "price", "number_of_reviews", "reviews_per_month"]


def region_counts(df: pd.DataFrame) -> pd.Series:
    return df[REGION_COL].value_counts().sort_index()


def price_summary(df: pd.DataFrame) -> pd.DataFrame:
    return df.groupby(REGION_COL)["price"].describe()


def correlation_matrix(df: pd.DataFrame) -> pd.DataFrame:
    cols = [c for c in CORR_COLUMNS if c in df.columns]
    return df[cols].corr()


def map_points(df: pd.DataFrame) -> pd.DataFrame:
    return df[["latitude", "longitude"]].dropna().rename(columns={"latitude": "lat", "longitude": "lon"})


def price_boxplot(df: pd.DataFrame):
    """地域別 log1p(price) の箱ひげ図"""
    regions = sorted(df[REGION_COL].dropna().unique())
    data = [np.log1p(df.loc[df[REGION_COL] == r, "price"].dropna()) for r in regions]
    fig, ax = plt.subplots(figsize=(8, 4))
    ax.boxplot(data)
    ax.set_xticks(range(1, len(regions) + 1))
    ax.set_xticklabels(regions)
    ax.set_ylabel("log(1 + price)")
    fig.tight_layout()
    return fig
