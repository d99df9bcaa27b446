from __future__ import annotations
import argparse
import dataclasses
import json
from dataclasses import dataclass

import pandas as pd

from config import AppConfig, FEATURE_SETS
from features import LABEL
from metrics import accuracy, confusion_matrix
from naive_bayes import NaiveBayesModel, predict_frame
from preprocess import load_raw_data
from train import train_model


@dataclass(frozen=True)
class EvaluationResult:
    confusion: pd.DataFrame  # rows = actual, columns = predicted
    accuracy: float
    evaluated: int
    skipped: int


def evaluate(model: NaiveBayesModel, labeled: pd.DataFrame) -> EvaluationResult:
    pred = predict_frame(model, labeled)
    keep = pred.notna()
    actual = labeled.loc[keep, LABEL].astype(str)
    classes = sorted(set(model.classes) | set(actual))
    cm = confusion_matrix(actual, pred[keep], classes)
    return EvaluationResult(
        confusion=cm,
        accuracy=accuracy(cm),
        evaluated=int(keep.sum()),
        skipped=int((~keep).sum()),
    )


def _matrix_to_dict(cm: pd.DataFrame) -> dict:
    return {str(actual): {str(p): int(v) for p, v in row.items()} for actual, row in cm.iterrows()}


def evaluate_feature_set(cfg: AppConfig, feature_set_name: str, listings: pd.DataFrame) -> dict:
    result = train_model(cfg, feature_set_name, listings)
    train_eval = evaluate(result.model, result.train_df)
    test_eval = evaluate(result.model, result.test_df)

    return {
        "feature_set": feature_set_name,
        "features": list(FEATURE_SETS[feature_set_name]),
        "classes": list(result.model.classes),
        "priors": {c: round(p, 4) for c, p in result.model.priors.items()},
        "counts": result.counts,
        "accuracy": {
            "train": round(train_eval.accuracy, 4),
            "test": round(test_eval.accuracy, 4),
        },
        "skipped": {"train": train_eval.skipped, "test": test_eval.skipped},
        "confusion_matrix": {
            "train": _matrix_to_dict(train_eval.confusion),
            "test": _matrix_to_dict(test_eval.confusion),
        },
    }


def evaluate_all(cfg: AppConfig) -> list[dict]:
    listings, rejected = load_raw_data(cfg.raw_data_path, return_rejected=True)
    if rejected:
        print(f"[WARN] rejected {rejected} rows that failed to parse")
    return [evaluate_feature_set(cfg, name, listings) for name in cfg.feature_sets]


def _parse_regions(value: str):
    if value.lower() == "all":
        return None
    return tuple(r.strip() for r in value.split(",") if r.strip())


def main() -> None:
    defaults = AppConfig()
    parser = argparse.ArgumentParser(description="Fit and evaluate the region classifier.")
    parser.add_argument("--input", default=defaults.raw_data_path, help="Listings CSV path.")
    parser.add_argument(
        "--feature-set",
        action="append",
        choices=sorted(FEATURE_SETS),
        help="Feature set to evaluate (repeatable).",
    )
    parser.add_argument("--seed", type=int, default=defaults.random_state)
    parser.add_argument("--train-fraction", type=float, default=defaults.train_fraction)
    parser.add_argument("--variance-floor", type=float, default=defaults.variance_floor)
    parser.add_argument("--smoothing", type=float, default=defaults.smoothing)
    parser.add_argument(
        "--regions",
        default=",".join(defaults.regions or ()) or "all",
        help="Comma separated regions to model, or 'all'.",
    )
    args = parser.parse_args()

    cfg = dataclasses.replace(
        defaults,
        raw_data_path=args.input,
        random_state=args.seed,
        train_fraction=args.train_fraction,
        variance_floor=args.variance_floor,
        smoothing=args.smoothing,
        regions=_parse_regions(args.regions),
        feature_sets=tuple(args.feature_set) if args.feature_set else defaults.feature_sets,
    )
    results = evaluate_all(cfg)
    print(json.dumps(results, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
