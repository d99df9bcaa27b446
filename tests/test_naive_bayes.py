import dataclasses
import math

import numpy as np
import pandas as pd
import pytest

from features import LABEL
from naive_bayes import fit, log_scores, predict, predict_frame, predict_proba


def _numeric(values_by_class, feature="price"):
    rows = [(cls, v) for cls, values in values_by_class.items() for v in values]
    return pd.DataFrame(rows, columns=[LABEL, feature])


def _rooms(rooms_by_class):
    rows = [(cls, r) for cls, rooms in rooms_by_class.items() for r in rooms]
    return pd.DataFrame(rows, columns=[LABEL, "room_type"])


def test_separated_means_classify_training_rows():
    train = _numeric({"A": [0.99, 1.0, 1.01, 0.995, 1.005], "B": [99.9, 100.0, 100.1, 99.95, 100.05]})
    model = fit(train, ["price"])
    pred = predict_frame(model, train)
    assert (pred == train[LABEL]).all()


def test_fit_estimates_priors_and_population_variance():
    train = _numeric({"A": [1.0, 3.0], "B": [5.0, 5.0, 8.0]})
    model = fit(train, ["price"])
    assert model.classes == ("A", "B")
    assert model.priors["A"] == pytest.approx(0.4)
    assert model.priors["B"] == pytest.approx(0.6)
    assert model.gaussians["price"]["A"] == pytest.approx((2.0, 1.0))
    assert model.gaussians["price"]["B"] == pytest.approx((6.0, 2.0))


def test_single_row_class_uses_variance_floor():
    train = _numeric({"A": [1.0, 1.5, 2.0, 2.5, 3.0], "B": [7.0]})
    model = fit(train, ["price"], variance_floor=1e-6)
    assert model.gaussians["price"]["B"] == (7.0, 1e-6)
    scores = log_scores(model, {"price": 2.0})
    assert all(math.isfinite(s) for s in scores.values())
    assert predict(model, {"price": 7.0}) == "B"


def test_unseen_category_keeps_nonzero_probability():
    train = _rooms({"A": ["Entire home/apt"] * 6, "B": ["Private room"] * 4})
    model = fit(train, ["room_type"])
    for value in ["Private room", "Hotel room"]:
        scores = log_scores(model, {"room_type": value})
        assert all(math.isfinite(s) for s in scores.values())
        proba = predict_proba(model, {"room_type": value})
        assert proba["A"] > 0
    assert model.categories["room_type"]["A"]["Private room"] == pytest.approx(1 / 8)
    assert model.unseen["room_type"]["A"] == pytest.approx(1 / 9)


def test_majority_class_wins_when_distributions_match():
    values = {"big": list(np.linspace(0, 1, 95)), "small": list(np.linspace(0, 1, 5))}
    train = _numeric(values)
    model = fit(train, ["price"])
    pred = predict_frame(model, train)
    assert (pred == "big").mean() >= model.priors["big"]


def test_more_smoothing_flattens_rare_categories():
    train = _rooms(
        {
            "A": ["Shared room"] * 10 + ["Private room"] * 10,
            "B": ["Private room"] * 20,
        }
    )
    gaps = []
    for alpha in [0.5, 1.0, 5.0, 50.0]:
        model = fit(train, ["room_type"], smoothing=alpha)
        scores = log_scores(model, {"room_type": "Shared room"})
        gaps.append(scores["A"] - scores["B"])
    assert all(g > 0 for g in gaps)
    assert all(later < earlier for earlier, later in zip(gaps, gaps[1:]))


def test_ties_go_to_first_label():
    train = _numeric({"b": [1.0, 2.0, 3.0], "a": [1.0, 2.0, 3.0]})
    model = fit(train, ["price"])
    assert model.classes == ("a", "b")
    assert predict(model, {"price": 2.0}) == "a"


def test_mixed_features_and_proba_sum_to_one():
    train = pd.DataFrame(
        {
            LABEL: ["A", "A", "A", "B", "B", "B"],
            "price": [4.0, 4.2, 4.1, 5.0, 5.3, 5.1],
            "room_type": ["Private room", "Private room", "Entire home/apt"] + ["Entire home/apt"] * 3,
        }
    )
    model = fit(train, ["price", "room_type"])
    assert model.numeric_features == ("price",)
    assert model.categorical_features == ("room_type",)
    proba = predict_proba(model, {"price": 4.1, "room_type": "Private room"})
    assert sum(proba.values()) == pytest.approx(1.0)
    assert max(proba, key=proba.get) == "A"


def test_fit_does_not_mutate_training_and_model_is_frozen():
    train = _numeric({"A": [1.0, 2.0], "B": [3.0, 4.0]})
    before = train.copy()
    model = fit(train, ["price"])
    pd.testing.assert_frame_equal(train, before)
    with pytest.raises(dataclasses.FrozenInstanceError):
        model.smoothing = 2.0
    with pytest.raises(TypeError):
        model.priors["A"] = 0.9


def test_class_without_training_rows_is_fatal():
    train = _numeric({"A": [1.0, 2.0], "B": [3.0, 4.0]})
    with pytest.raises(ValueError, match="Queens"):
        fit(train, ["price"], classes=["A", "B", "Queens"])


def test_empty_training_set_is_fatal():
    with pytest.raises(ValueError, match="empty"):
        fit(_numeric({}), ["price"])


def test_predict_requires_every_feature():
    model = fit(_numeric({"A": [1.0, 2.0], "B": [3.0, 4.0]}), ["price"])
    with pytest.raises(ValueError, match="price"):
        predict(model, {"number_of_reviews": 1.0})
    with pytest.raises(ValueError):
        predict(model, {"price": float("nan")})


def test_predict_frame_skips_missing_rows():
    model = fit(_numeric({"A": [1.0, 2.0], "B": [30.0, 40.0]}), ["price"])
    frame = pd.DataFrame({LABEL: ["A", "B", "A"], "price": [1.5, np.nan, 35.0]})
    pred = predict_frame(model, frame)
    assert pred.iloc[0] == "A"
    assert pred.iloc[1] is None
    assert pred.iloc[2] == "B"
