from __future__ import annotations
import argparse
import os
from pathlib import Path
import numpy as np
import pandas as pd
import pandera.pandas as pa
from pandera.errors import SchemaErrors

from config import AppConfig


REGION_COL = "neighbourhood_group"

REQUIRED_COLUMNS = [
    REGION_COL,
    "neighbourhood",
    "room_type",
    "latitude",
    "longitude",
    "price",
    "number_of_reviews",
]

OPTIONAL_COLUMNS = ["reviews_per_month"]

NUMERIC_COLUMNS = ["latitude", "longitude", "price", "number_of_reviews", "reviews_per_month"]
TEXT_COLUMNS = [REGION_COL, "neighbourhood", "room_type"]

# Inside Airbnb の詳細版エクスポートの列名
COLUMN_ALIASES = {
    "neighbourhood_group_cleansed": REGION_COL,
    "neighbourhood_cleansed": "neighbourhood",
}

EXCLUDED_COLUMNS = ["id", "host_id"]


# 文字列列は coerce_listings で str に揃えるので、ここでは列の存在だけを見る
ListingSchema = pa.DataFrameSchema(
    {
        "id": pa.Column(required=False, nullable=True),
        "host_id": pa.Column(required=False, nullable=True),
        REGION_COL: pa.Column(nullable=True),
        "neighbourhood": pa.Column(nullable=True),
        "room_type": pa.Column(nullable=True),
        "latitude": pa.Column(float, pa.Check.in_range(-90, 90), nullable=True),
        "longitude": pa.Column(float, pa.Check.in_range(-180, 180), nullable=True),
        "price": pa.Column(float, nullable=True),
        "number_of_reviews": pa.Column(float, nullable=True),
        "reviews_per_month": pa.Column(float, nullable=True),
    },
    strict=False,
)


SAMPLE_REGIONS = {
    # name: (weight, price_median, lat, lon, p_entire, reviews_mean)
    "Manhattan": (0.42, 180.0, 40.776, -73.971, 0.62, 20.0),
    "Brooklyn": (0.40, 110.0, 40.650, -73.950, 0.47, 24.0),
    "Queens": (0.12, 85.0, 40.728, -73.795, 0.37, 28.0),
    "Bronx": (0.04, 75.0, 40.837, -73.865, 0.35, 26.0),
    "Staten Island": (0.02, 90.0, 40.579, -74.151, 0.47, 31.0),
}

SAMPLE_NEIGHBOURHOODS = {
    "Manhattan": ["Harlem", "Upper West Side", "Hell's Kitchen", "East Village", "Midtown"],
    "Brooklyn": ["Williamsburg", "Bedford-Stuyvesant", "Bushwick", "Crown Heights", "Park Slope"],
    "Queens": ["Astoria", "Long Island City", "Flushing", "Ridgewood", "Sunnyside"],
    "Bronx": ["Kingsbridge", "Mott Haven", "Fordham", "Concourse"],
    "Staten Island": ["St. George", "Tompkinsville", "Stapleton"],
}


def generate_sample_csv(path: str, rows: int = 2000, seed: int = 42) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    rng = np.random.default_rng(seed)
    names = list(SAMPLE_REGIONS)
    weights = np.array([SAMPLE_REGIONS[n][0] for n in names])
    region = rng.choice(names, size=rows, p=weights / weights.sum())
    params = pd.DataFrame.from_dict(
        SAMPLE_REGIONS,
        orient="index",
        columns=["weight", "price_median", "lat", "lon", "p_entire", "reviews_mean"],
    ).loc[region]

    p_entire = params["p_entire"].to_numpy()
    u = rng.random(rows)
    room_type = np.where(
        u < p_entire,
        "Entire home/apt",
        np.where(u < p_entire + (1 - p_entire) * 0.92, "Private room", "Shared room"),
    )
    room_factor = np.where(room_type == "Entire home/apt", 1.6, np.where(room_type == "Private room", 0.7, 0.45))
    price = np.round(params["price_median"].to_numpy() * room_factor * rng.lognormal(0.0, 0.5, size=rows))
    # 価格0の誤入力を少し混ぜる
    price[rng.random(rows) < 0.005] = 0

    reviews = rng.negative_binomial(1, 1.0 / (1.0 + params["reviews_mean"].to_numpy()))
    per_month = np.round(reviews / rng.uniform(3, 60, size=rows), 2)
    per_month = np.where(reviews == 0, np.nan, per_month)

    df = pd.DataFrame(
        {
            "id": np.arange(2539, 2539 + rows),
            "host_id": rng.integers(2_000, 270_000_000, size=rows),
            REGION_COL: region,
            "neighbourhood": [rng.choice(SAMPLE_NEIGHBOURHOODS[r]) for r in region],
            "latitude": params["lat"].to_numpy() + rng.normal(0, 0.02, size=rows),
            "longitude": params["lon"].to_numpy() + rng.normal(0, 0.02, size=rows),
            "room_type": room_type,
            "price": price.astype(int),
            "number_of_reviews": reviews,
            "reviews_per_month": per_month,
        }
    )
    df.to_csv(path, index=False)


def parse_price(series: pd.Series) -> pd.Series:
    """"$1,200.00" のような通貨文字列も数値にする"""
    if pd.api.types.is_numeric_dtype(series):
        return series.astype("float64")
    text = series.astype("object").where(series.isna(), series.astype(str))
    text = text.str.replace("$", "", regex=False).str.replace(",", "", regex=False).str.strip()
    return pd.to_numeric(text, errors="coerce").astype("float64")


def _to_numeric(series: pd.Series) -> pd.Series:
    return pd.to_numeric(series, errors="coerce").astype("float64")


def _to_text(series: pd.Series) -> pd.Series:
    return series.astype("object").map(lambda v: v if pd.isna(v) else str(v).strip())


def coerce_listings(df: pd.DataFrame) -> tuple[pd.DataFrame, int]:
    """
    列ごとに型を固定する。必須の数値列が変換できなかった行（元が非欠損なのにNaN）は捨て、その件数を返す。
    任意列（reviews_per_month）の変換失敗は欠損扱いにする
    """
    df = df.copy()
    rejected = np.zeros(len(df), dtype=bool)
    for c in NUMERIC_COLUMNS:
        raw = df[c]
        parsed = parse_price(raw) if c == "price" else _to_numeric(raw)
        if c not in OPTIONAL_COLUMNS:
            rejected |= (raw.notna() & parsed.isna()).to_numpy()
        df[c] = parsed
    for c in TEXT_COLUMNS:
        df[c] = _to_text(df[c])
    return df.loc[~rejected].reset_index(drop=True), int(rejected.sum())


def validate_listings(df: pd.DataFrame) -> tuple[pd.DataFrame, int]:
    """
    スキーマ違反の行（緯度経度の範囲外など）は捨て、その件数を返す。
    行に紐づかない違反（列の型など）はそのまま SchemaErrors を投げる
    """
    try:
        return ListingSchema.validate(df, lazy=True), 0
    except SchemaErrors as exc:
        bad = exc.failure_cases["index"]
        if bad.isna().any():
            raise
        bad_rows = sorted({int(i) for i in bad})
        kept = df.drop(index=bad_rows).reset_index(drop=True)
        return ListingSchema.validate(kept), len(bad_rows)


def load_raw_data(raw_path: str, return_rejected: bool = False):
    if not os.path.exists(raw_path):
        raise FileNotFoundError(f"listings file not found: {raw_path}")
    try:
        df = pd.read_csv(raw_path, low_memory=False)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        raise ValueError(f"Malformed listings file {raw_path}: {exc}") from exc

    df = df.rename(columns={k: v for k, v in COLUMN_ALIASES.items() if v not in df.columns})
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")
    for c in OPTIONAL_COLUMNS:
        if c not in df.columns:
            df[c] = np.nan

    df, unparsed = coerce_listings(df)
    df, invalid = validate_listings(df)
    if return_rejected:
        return df, unparsed + invalid
    return df


def clean(df: pd.DataFrame) -> pd.DataFrame:
    """
    id/host_idを除外し、price <= 0（誤入力扱い）の行を落とす
    """
    total = len(df)
    out = df.drop(columns=[c for c in EXCLUDED_COLUMNS if c in df.columns])
    out = out.loc[out["price"] > 0].copy()
    if out.empty:
        raise ValueError(
            f"No listings left after price filter: {total} of {total} rows had price <= 0 or missing"
        )
    return out


def main() -> None:
    parser = argparse.ArgumentParser(description="Load and clean a listings CSV.")
    parser.add_argument("--input", default=AppConfig().raw_data_path, help="Listings CSV path.")
    parser.add_argument("--sample", default=None, help="Write a synthetic listings CSV to this path and exit.")
    parser.add_argument("--rows", type=int, default=2000)
    args = parser.parse_args()

    if args.sample:
        generate_sample_csv(args.sample, rows=args.rows)
        print(f"sample rows: {args.rows} -> {args.sample}")
        return

    df, rejected = load_raw_data(args.input, return_rejected=True)
    cleaned = clean(df)
    print(f"loaded rows: {len(df)} (rejected {rejected})")
    print(f"cleaned rows: {len(cleaned)}")


if __name__ == "__main__":
    main()
