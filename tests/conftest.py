import sys
from pathlib import Path

import pandas as pd
import pytest

# Add src/ to sys.path (modules are imported by their bare names)
SRC = Path(__file__).resolve().parents[1] / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

LISTING_COLUMNS = [
    "id",
    "host_id",
    "neighbourhood_group",
    "neighbourhood",
    "latitude",
    "longitude",
    "room_type",
    "price",
    "number_of_reviews",
    "reviews_per_month",
]


def write_listings(path, rows, columns=LISTING_COLUMNS):
    pd.DataFrame(rows, columns=columns).to_csv(path, index=False)
    return str(path)


@pytest.fixture(scope="session")
def sample_csv(tmp_path_factory):
    from preprocess import generate_sample_csv

    path = tmp_path_factory.mktemp("data") / "listings.csv"
    generate_sample_csv(str(path), rows=2000, seed=7)
    return str(path)


@pytest.fixture(scope="session")
def sample_listings(sample_csv):
    from preprocess import load_raw_data

    return load_raw_data(sample_csv)


@pytest.fixture
def small_listings():
    rows = [
        [1, 10, "Manhattan", "Harlem", 40.81, -73.94, "Entire home/apt", "$150.00", 12, 0.4],
        [2, 11, "Manhattan", "Midtown", 40.75, -73.98, "Private room", "$1,200.00", 3, 0.1],
        [3, 12, "Brooklyn", "Bushwick", 40.69, -73.92, "Private room", "$60.00", 0, None],
        [4, 13, "Brooklyn", "Park Slope", 40.67, -73.98, "Entire home/apt", "$0.00", 45, 1.2],
        [5, 14, "Queens", "Astoria", 40.76, -73.92, "Shared room", "$35.00", 8, 0.3],
    ]
    return pd.DataFrame(rows, columns=LISTING_COLUMNS)
