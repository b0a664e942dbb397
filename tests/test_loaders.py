import json

import geopandas as gpd
import pandas as pd
import pytest
from shapely.geometry import box

from airbnb_eda.config import config, load_config
from airbnb_eda.errors import JoinGapLog, LoadError
from airbnb_eda.loaders import (
    find_raw,
    largest_waterways,
    load_listings,
    load_neighbourhoods,
    load_reviews,
    load_waterways,
)


# --- Tables ---

def test_load_listings_keeps_ids_as_text(tmp_path, raw_listings_df):
    raw_listings_df.loc[0, "host_id"] = "123456789012345678901"
    path = tmp_path / "listings.csv"
    raw_listings_df.to_csv(path, index=False)

    listings = load_listings(str(path))
    assert listings.loc[0, "host_id"] == "123456789012345678901"
    assert listings.loc[3, "price"] == "$1,250.00"
    assert "neighbourhood" not in listings.columns


def test_load_listings_missing_column(tmp_path, raw_listings_df):
    path = tmp_path / "listings.csv"
    raw_listings_df.drop(columns=["price"]).to_csv(path, index=False)
    with pytest.raises(LoadError, match="price"):
        load_listings(str(path))


def test_load_listings_missing_file(tmp_path):
    with pytest.raises(LoadError):
        load_listings(str(tmp_path / "listings.csv"))


def test_load_empty_file(tmp_path):
    path = tmp_path / "reviews.csv"
    path.write_text("")
    with pytest.raises(LoadError):
        load_reviews(str(path))


def test_load_reviews_parses_dates(data_dir):
    reviews = load_reviews(str(data_dir / "reviews.csv"))
    assert pd.api.types.is_datetime64_any_dtype(reviews["date"])
    assert reviews["comments"].isna().sum() == 1


def test_load_reviews_bad_date(tmp_path, raw_reviews_df):
    raw_reviews_df.loc[0, "date"] = "not a date"
    path = tmp_path / "reviews.csv"
    raw_reviews_df.to_csv(path, index=False)
    with pytest.raises(LoadError):
        load_reviews(str(path))


def test_load_reviews_missing_date(tmp_path, raw_reviews_df):
    """An empty date cell is an error naming the review, not a silent NaT."""
    raw_reviews_df.loc[0, "date"] = None
    path = tmp_path / "reviews.csv"
    raw_reviews_df.to_csv(path, index=False)
    with pytest.raises(LoadError, match="r1"):
        load_reviews(str(path))


def test_find_raw_prefers_gzip(tmp_path, raw_listings_df):
    raw_listings_df.to_csv(tmp_path / "listings.csv", index=False)
    assert find_raw(str(tmp_path), "listings").endswith("listings.csv")

    raw_listings_df.to_csv(tmp_path / "listings.csv.gz", index=False, compression="gzip")
    path = find_raw(str(tmp_path), "listings")
    assert path.endswith("listings.csv.gz")
    assert len(load_listings(path)) == len(raw_listings_df)

    with pytest.raises(LoadError):
        find_raw(str(tmp_path), "calendar")


# --- Geometry ---

def test_load_neighbourhoods_drops_unnamed_features(data_dir):
    neighbourhoods = load_neighbourhoods(str(data_dir / "neighbourhoods.geojson"))
    assert neighbourhoods["neighbourhood"].tolist() == ["Centrum", "Noord", "Oost", "Zuid"]
    assert list(neighbourhoods.columns) == ["neighbourhood", "neighbourhood_group", "geometry"]


def test_load_neighbourhoods_missing_file(tmp_path):
    with pytest.raises(LoadError):
        load_neighbourhoods(str(tmp_path / "neighbourhoods.geojson"))


def test_largest_waterways_by_area_property(waterways):
    largest = largest_waterways(waterways, n=2)
    assert largest["area"].tolist() == [5.0, 3.0]


def test_largest_waterways_by_geometry_area():
    waterways = gpd.GeoDataFrame(geometry=[box(0, 0, 1, 1), box(0, 0, 3, 3), box(0, 0, 2, 2)])
    largest = largest_waterways(waterways, n=2)
    assert largest.geometry.area.tolist() == [9.0, 4.0]


def test_load_waterways(data_dir):
    assert len(load_waterways(str(data_dir / "waterways.geojson"), n=2)) == 2


# --- Configuration ---

def test_load_config_defaults_are_copied():
    loaded = load_config()
    loaded["BOAT_TYPES"].append("Yacht")
    assert config["BOAT_TYPES"] == ["Boat", "Houseboat"]


def test_load_config_file_and_overrides(tmp_path):
    path = tmp_path / "berlin.json"
    path.write_text(json.dumps({"CITY": "berlin", "TOP_K_REVIEWERS": 5}))

    loaded = load_config(str(path), TOP_K_REVIEWERS=3, DATA_DIR=None)
    assert loaded["CITY"] == "berlin"
    assert loaded["TOP_K_REVIEWERS"] == 3
    assert loaded["DATA_DIR"] == config["DATA_DIR"]


@pytest.mark.parametrize("content", ["{not json", json.dumps(["CITY"]), json.dumps({"COLOR": "red"})])
def test_load_config_rejects_bad_files(tmp_path, content):
    path = tmp_path / "config.json"
    path.write_text(content)
    with pytest.raises(LoadError):
        load_config(str(path))


def test_join_gap_log_summary():
    gap_log = JoinGapLog(max_sample=2)
    gap_log.record("reviews->listings", 2, ["9", "8"])
    gap_log.record("reviews->listings", 1, ["7"])
    gap_log.record("listings->neighbourhoods", 0, [])

    assert len(gap_log) == 2
    assert gap_log.total() == 3
    assert gap_log.to_dict() == {"reviews->listings": {"dropped": 3, "sample_keys": ["7", "8"]}}
