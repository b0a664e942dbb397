import geopandas as gpd
import pandas as pd
import pytest
from shapely.geometry import box

from airbnb_eda.data_processing import normalize_listings, normalize_reviews


@pytest.fixture()
def raw_listings_df():
    """
    Raw listings as they come out of the detailed Inside Airbnb export.

    Centrum: three listings priced 100/200/300 with 0/5/10 reviews.
    Noord: two listings, none reviewed (a coverage gap once filtered).
    Host 30 owns one listing in Noord and one in Oost.
    """
    return pd.DataFrame({
        "id": ["1", "2", "3", "4", "5", "6"],
        "host_id": ["10", "10", "20", "30", "50", "30"],
        "neighbourhood": [None] * 6,
        "neighbourhood_cleansed": ["Centrum", "Centrum", "Centrum", "Noord", "Noord", "Oost"],
        "neighbourhood_group_cleansed": ["Centrum", "Centrum", "Centrum", "Noord", "Noord", "Oost"],
        "property_type": [
            "Entire home", "Private room in serviced apartment", "Houseboat",
            "Boat", "Entire rental unit", "Private room",
        ],
        "price": ["$100.00", "$200.00", "$300.00", "$1,250.00", "$80.00", "$50.00"],
        "accommodates": [2, 4, 6, 8, 2, 1],
        "number_of_reviews": [0, 5, 10, 0, 0, 3],
    })


@pytest.fixture()
def raw_reviews_df():
    """Reviewers A and B write three reviews each, C one; r5 reviews a listing not in the snapshot."""
    return pd.DataFrame({
        "id": ["r1", "r2", "r3", "r4", "r5", "r6", "r7"],
        "listing_id": ["2", "3", "2", "6", "999", "3", "6"],
        "reviewer_id": ["A", "B", "A", "B", "A", "C", "B"],
        "date": ["2023-01-05", "2023-01-20", "2023-01-25", "2023-03-02", "2023-03-10", "2023-04-01", "2023-04-15"],
        "comments": ["Great stay", "Lovely boat", None, "ok", "Gone now", "Nice", "Fine place"],
    })


@pytest.fixture()
def listings(raw_listings_df):
    return normalize_listings(raw_listings_df)


@pytest.fixture()
def reviews(raw_reviews_df):
    return normalize_reviews(raw_reviews_df)


@pytest.fixture()
def neighbourhoods():
    """Four named neighbourhoods; Zuid has no listings at all."""
    return gpd.GeoDataFrame(
        {
            "neighbourhood": ["Centrum", "Noord", "Oost", "Zuid"],
            "neighbourhood_group": ["Centrum", "Noord", "Oost", "Zuid"],
        },
        geometry=[box(4.88, 52.36, 4.91, 52.38), box(4.88, 52.38, 4.95, 52.42),
                  box(4.91, 52.34, 4.96, 52.38), box(4.85, 52.32, 4.91, 52.36)],
        crs="EPSG:4326",
    )


@pytest.fixture()
def waterways():
    return gpd.GeoDataFrame(
        {"area": [5.0, 1.0, 3.0]},
        geometry=[box(4.89, 52.37, 4.90, 52.38), box(4.90, 52.37, 4.901, 52.371), box(4.92, 52.36, 4.93, 52.37)],
        crs="EPSG:4326",
    )


@pytest.fixture()
def data_dir(tmp_path, raw_listings_df, raw_reviews_df, neighbourhoods, waterways):
    """A data directory laid out like an Inside Airbnb city download."""
    directory = tmp_path / "data"
    directory.mkdir()
    raw_listings_df.to_csv(directory / "listings.csv", index=False)
    raw_reviews_df.to_csv(directory / "reviews.csv", index=False)

    # The real file carries two unnamed features that are not neighbourhoods.
    artifacts = gpd.GeoDataFrame(
        {"neighbourhood": [None, None], "neighbourhood_group": [None, None]},
        geometry=[box(5.0, 52.0, 5.1, 52.1), box(5.1, 52.0, 5.2, 52.1)],
        crs="EPSG:4326",
    )
    pd.concat([neighbourhoods, artifacts], ignore_index=True).to_file(
        directory / "neighbourhoods.geojson", driver="GeoJSON"
    )
    waterways.to_file(directory / "waterways.geojson", driver="GeoJSON")
    return directory
