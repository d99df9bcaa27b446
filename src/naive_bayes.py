# src/naive_bayes.py
"""
Gaussian / categorical Naive Bayes for predicting a listing's region.

Scores are accumulated in log space: log prior + sum of per-feature log
likelihoods. The evidence term is never computed because it is shared by
every class and does not move the argmax. Ties go to the first class in
lexical order.
"""
from __future__ import annotations
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Sequence
import math
import numpy as np
import pandas as pd

from features import LABEL, feature_kind


@dataclass(frozen=True)
class NaiveBayesModel:
    classes: tuple[str, ...]
    features: tuple[str, ...]
    priors: Mapping[str, float]
    # feature -> class -> (mean, variance)
    gaussians: Mapping[str, Mapping[str, tuple[float, float]]]
    # feature -> class -> category -> smoothed P(category | class)
    categories: Mapping[str, Mapping[str, Mapping[str, float]]]
    # feature -> class -> P(category outside the training domain | class)
    unseen: Mapping[str, Mapping[str, float]]
    variance_floor: float
    smoothing: float
    n_train: int

    @property
    def numeric_features(self) -> tuple[str, ...]:
        return tuple(f for f in self.features if f in self.gaussians)

    @property
    def categorical_features(self) -> tuple[str, ...]:
        return tuple(f for f in self.features if f in self.categories)


def _freeze(d: dict) -> Mapping:
    return MappingProxyType({k: _freeze(v) if isinstance(v, dict) else v for k, v in d.items()})


def fit(
    training: pd.DataFrame,
    features: Sequence[str],
    classes: Optional[Iterable[str]] = None,
    variance_floor: float = 1e-9,
    smoothing: float = 1.0,
) -> NaiveBayesModel:
    """
    Estimate priors and class-conditional distributions from ``training``.

    ``classes`` is the full label domain. Every class in it needs at least one
    training row; without it the classes are whatever labels appear in
    ``training``. Rows missing a selected feature are left out of the fit.
    """
    if variance_floor <= 0:
        raise ValueError(f"variance_floor must be positive: {variance_floor}")
    if smoothing <= 0:
        raise ValueError(f"smoothing must be positive: {smoothing}")
    features = tuple(features)
    kinds = {f: feature_kind(f) for f in features}

    data = training.dropna(subset=[LABEL, *features])
    if data.empty:
        raise ValueError("Cannot fit on an empty training set")

    counts = data[LABEL].value_counts()
    if classes is None:
        classes = tuple(sorted(counts.index.astype(str)))
    else:
        classes = tuple(sorted(set(classes)))
        empty = [c for c in classes if counts.get(c, 0) == 0]
        if empty:
            raise ValueError(f"Classes with zero training rows: {empty}")
        data = data.loc[data[LABEL].isin(classes)]
        counts = data[LABEL].value_counts()

    total = int(counts.sum())
    priors = {c: float(counts[c]) / total for c in classes}
    grouped = data.groupby(LABEL)

    gaussians: dict = {}
    categories: dict = {}
    unseen: dict = {}
    for f in features:
        if kinds[f] == "numeric":
            means = grouped[f].mean()
            variances = grouped[f].var(ddof=0)
            gaussians[f] = {
                c: (float(means[c]), max(float(variances[c]), variance_floor)) for c in classes
            }
        else:
            values = data[f].astype(str)
            domain = sorted(values.unique())
            table = pd.crosstab(data[LABEL], values).reindex(index=list(classes), columns=domain, fill_value=0)
            n_class = table.sum(axis=1)
            probs = table.add(smoothing).div(n_class + smoothing * len(domain), axis=0)
            categories[f] = {c: {v: float(probs.at[c, v]) for v in domain} for c in classes}
            unseen[f] = {c: smoothing / (float(n_class[c]) + smoothing * (len(domain) + 1)) for c in classes}

    return NaiveBayesModel(
        classes=classes,
        features=features,
        priors=_freeze(priors),
        gaussians=_freeze(gaussians),
        categories=_freeze(categories),
        unseen=_freeze(unseen),
        variance_floor=variance_floor,
        smoothing=smoothing,
        n_train=total,
    )


def log_score_matrix(model: NaiveBayesModel, frame: pd.DataFrame) -> np.ndarray:
    """(rows, classes) の対数スコア。欠損のない行を前提にする"""
    n = len(frame)
    scores = np.tile(np.log([model.priors[c] for c in model.classes]), (n, 1))
    for f in model.numeric_features:
        x = frame[f].to_numpy(dtype="float64")[:, None]
        mean = np.array([model.gaussians[f][c][0] for c in model.classes])
        var = np.array([model.gaussians[f][c][1] for c in model.classes])
        scores += -0.5 * (np.log(2.0 * math.pi * var) + (x - mean) ** 2 / var)
    for f in model.categorical_features:
        values = frame[f].astype(str)
        cols = [
            values.map(dict(model.categories[f][c])).fillna(model.unseen[f][c]).to_numpy(dtype="float64")
            for c in model.classes
        ]
        scores += np.log(np.column_stack(cols))
    return scores


def _vector_frame(model: NaiveBayesModel, vector: Mapping) -> pd.DataFrame:
    missing = [f for f in model.features if f not in vector or pd.isna(vector[f])]
    if missing:
        raise ValueError(f"Feature vector is missing values for: {missing}")
    row = {}
    for f in model.features:
        row[f] = [float(vector[f])] if f in model.gaussians else [str(vector[f])]
    return pd.DataFrame(row)


def log_scores(model: NaiveBayesModel, vector: Mapping) -> dict[str, float]:
    scores = log_score_matrix(model, _vector_frame(model, vector))[0]
    return {c: float(s) for c, s in zip(model.classes, scores)}


def predict(model: NaiveBayesModel, vector: Mapping) -> str:
    scores = log_score_matrix(model, _vector_frame(model, vector))[0]
    return model.classes[int(np.argmax(scores))]


def predict_proba(model: NaiveBayesModel, vector: Mapping) -> dict[str, float]:
    scores = log_score_matrix(model, _vector_frame(model, vector))[0]
    # log-sum-exp
    shifted = np.exp(scores - scores.max())
    probs = shifted / shifted.sum()
    return {c: float(p) for c, p in zip(model.classes, probs)}


def predict_frame(model: NaiveBayesModel, frame: pd.DataFrame) -> pd.Series:
    """Predict every row; rows missing a selected feature come back as None."""
    complete = frame[list(model.features)].notna().all(axis=1).to_numpy()
    out = pd.Series([None] * len(frame), index=frame.index, dtype="object")
    if complete.any():
        scores = log_score_matrix(model, frame.loc[complete])
        out.loc[complete] = [model.classes[i] for i in np.argmax(scores, axis=1)]
    return out
