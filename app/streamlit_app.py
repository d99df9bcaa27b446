from __future__ import annotations
import dataclasses
import os
import sys
from pathlib import Path
import pandas as pd
import streamlit as st

sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

from config import AppConfig, FEATURE_SETS
from eda import correlation_matrix, map_points, price_boxplot, price_summary, region_counts
from evaluate import evaluate
from inference import predict_listing
from preprocess import clean, load_raw_data
from train import train_model


st.set_page_config(page_title="民泊リスティング分析", page_icon="🏙️", layout="wide")

cfg = AppConfig()


@st.cache_data
def _load(path: str) -> tuple[pd.DataFrame, int]:
    return load_raw_data(path, return_rejected=True)


st.title("民泊リスティング：探索的分析と地域分類")

data_path = st.text_input("リスティングCSV", value=cfg.raw_data_path)
if not os.path.exists(data_path):
    st.warning("CSVが見つかりません。`python src/preprocess.py --sample PATH` でサンプルを作成できます。")
    st.stop()

try:
    listings, rejected = _load(data_path)
    cleaned = clean(listings)
except Exception as exc:
    st.error(f"読み込みに失敗しました: {exc}")
    st.stop()

st.caption(f"読み込み {len(listings):,} 行（解析不能 {rejected} 行）、price > 0 の行 {len(cleaned):,} 行")

col1, col2 = st.columns(2)
with col1:
    st.subheader("地域別の件数")
    st.bar_chart(region_counts(cleaned))
with col2:
    st.subheader("地域別の価格")
    st.pyplot(price_boxplot(cleaned))

st.subheader("地図")
st.map(map_points(cleaned))

st.subheader("相関行列")
st.dataframe(correlation_matrix(cleaned).round(3))
st.dataframe(price_summary(cleaned).round(1))

st.header("ナイーブベイズ分類")
all_regions = sorted(cleaned["neighbourhood_group"].dropna().unique())
default_regions = [r for r in (cfg.regions or ()) if r in all_regions] or all_regions
regions = st.multiselect("対象地域", all_regions, default=default_regions)
feature_set_name = st.selectbox("特徴量セット", sorted(FEATURE_SETS), index=sorted(FEATURE_SETS).index("price_room_reviews"))
c1, c2, c3, c4 = st.columns(4)
seed = c1.number_input("seed", value=cfg.random_state, step=1)
train_fraction = c2.slider("train比率", min_value=0.1, max_value=0.9, value=cfg.train_fraction, step=0.05)
variance_floor = c3.number_input("分散の下限", value=cfg.variance_floor, format="%.1e")
smoothing = c4.number_input("平滑化", value=cfg.smoothing, min_value=0.001)

if len(regions) < 2:
    st.info("地域を2つ以上選んでください。")
    st.stop()

try:
    run_cfg = dataclasses.replace(
        cfg,
        raw_data_path=data_path,
        random_state=int(seed),
        train_fraction=float(train_fraction),
        variance_floor=float(variance_floor),
        smoothing=float(smoothing),
        regions=tuple(regions),
    )
    result = train_model(run_cfg, feature_set_name, listings)
except ValueError as exc:
    st.error(f"学習に失敗しました: {exc}")
    st.stop()

train_eval = evaluate(result.model, result.train_df)
test_eval = evaluate(result.model, result.test_df)
m1, m2 = st.columns(2)
with m1:
    st.metric("train accuracy", f"{train_eval.accuracy:.4f}")
    st.dataframe(train_eval.confusion)
with m2:
    st.metric("test accuracy", f"{test_eval.accuracy:.4f}")
    st.dataframe(test_eval.confusion)

st.subheader("1件を分類する")
features = result.model.features
with st.form("predict_form"):
    inputs = {"price": st.number_input("price", min_value=1.0, value=120.0)}
    if "number_of_reviews" in features:
        inputs["number_of_reviews"] = st.number_input("number_of_reviews", min_value=0, value=10)
    if "reviews_per_month" in features:
        inputs["reviews_per_month"] = st.number_input("reviews_per_month", min_value=0.0, value=0.5)
    if "room_type" in features:
        inputs["room_type"] = st.selectbox("room_type", sorted(cleaned["room_type"].dropna().unique()))
    if "latitude" in features:
        inputs["latitude"] = st.number_input("latitude", value=40.73, format="%.4f")
        inputs["longitude"] = st.number_input("longitude", value=-73.93, format="%.4f")
    submitted = st.form_submit_button("分類する")

if submitted:
    try:
        label, proba = predict_listing(result.model, **inputs)
        st.success(f"推定地域: {label}")
        st.bar_chart(pd.Series(proba, name="posterior"))
    except ValueError as exc:
        st.error(f"分類に失敗しました: {exc}")
