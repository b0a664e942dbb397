# loaders.py

"""
Reads the raw Inside Airbnb files for one city into memory.

Each loader is all-or-nothing: either the whole table or geometry collection is
returned, or a LoadError is raised and the report run stops.

This module contains:
- find_raw: Resolves a table name to a .csv.gz or .csv file in the data directory.
- load_listings / load_reviews: Read the detailed listings and reviews tables.
- load_neighbourhoods: Reads the neighbourhood boundaries and drops unnamed features.
- load_waterways / largest_waterways: Read the waterway polygons used as a map overlay.
"""

import logging
import os
from typing import Dict, List

import geopandas as gpd
import pandas as pd

from airbnb_eda.errors import LoadError

logger = logging.getLogger(__name__)

LISTING_COLUMNS = [
    "id", "host_id", "neighbourhood_cleansed", "neighbourhood_group_cleansed",
    "property_type", "price", "accommodates", "number_of_reviews",
]
REVIEW_COLUMNS = ["id", "listing_id", "reviewer_id", "date", "comments"]
NEIGHBOURHOOD_COLUMNS = ["neighbourhood", "neighbourhood_group"]

# Read as text so large ids keep every digit and prices keep their "$1,234.00" form.
LISTING_DTYPES = {"id": str, "host_id": str, "price": str, "property_type": str}
REVIEW_DTYPES = {"id": str, "listing_id": str, "reviewer_id": str, "comments": str}


def find_raw(data_dir: str, base: str) -> str:
    """
    Returns the path of a raw table in data_dir, preferring .csv.gz then .csv.

    A base name that already carries an extension is used as-is.

    Raises:
        LoadError: If no matching file exists.
    """
    if base.endswith((".csv", ".csv.gz")):
        candidates = [os.path.join(data_dir, base)]
    else:
        candidates = [os.path.join(data_dir, f"{base}{ext}") for ext in (".csv.gz", ".csv")]
    for path in candidates:
        if os.path.exists(path):
            return path
    raise LoadError(f"Could not find {base}.csv(.gz) in {data_dir}.")


def require_columns(df: pd.DataFrame, required: List[str], table: str) -> None:
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise LoadError(f"{table} is missing required column(s): {', '.join(missing)}")


def parse_review_dates(reviews: pd.DataFrame) -> pd.Series:
    """
    Parses the review `date` column, rejecting unparsable and missing dates.

    Raises:
        LoadError: Naming up to five offending review ids.
    """
    try:
        dates = pd.to_datetime(reviews["date"], errors="raise")
    except (ValueError, TypeError) as exc:
        raise LoadError(f"reviews contain unparsable dates: {exc}") from exc
    missing = dates.isna()
    if missing.any():
        ids = reviews.loc[missing, "id"].astype(str).tolist()
        raise LoadError(f"{len(ids):,} review(s) have no date: {', '.join(ids[:5])}")
    return dates


def _read_table(path: str, required: List[str], dtypes: Dict[str, type], table: str) -> pd.DataFrame:
    if not os.path.exists(path):
        raise LoadError(f"{table} file not found: {path}")
    logger.info("Loading %s from: %s", table, path)
    try:
        header = pd.read_csv(path, nrows=0, compression="infer")
        require_columns(header, required, table)
        df = pd.read_csv(
            path,
            usecols=required,
            dtype=dtypes,
            compression="infer",
            low_memory=False,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError, OSError) as exc:
        raise LoadError(f"Could not read {table} from {path}: {exc}") from exc
    logger.info("Loaded %s %s rows.", f"{len(df):,}", table)
    return df


def load_listings(path: str) -> pd.DataFrame:
    """
    Loads the detailed listings table with the columns the analysis uses.

    Args:
        path (str): Path to listings.csv or listings.csv.gz.

    Returns:
        pd.DataFrame: Raw listings with identifier and price columns as text.
    """
    return _read_table(path, LISTING_COLUMNS, LISTING_DTYPES, "listings")


def load_reviews(path: str) -> pd.DataFrame:
    """
    Loads the detailed reviews table and parses the review dates.

    Args:
        path (str): Path to reviews.csv or reviews.csv.gz.

    Returns:
        pd.DataFrame: Reviews with identifier columns as text and `date` as datetime.
    """
    reviews = _read_table(path, REVIEW_COLUMNS, REVIEW_DTYPES, "reviews")
    reviews["date"] = parse_review_dates(reviews)
    return reviews


def _read_geometry(path: str, table: str) -> gpd.GeoDataFrame:
    if not os.path.exists(path):
        raise LoadError(f"{table} file not found: {path}")
    logger.info("Loading %s from: %s", table, path)
    try:
        gdf = gpd.read_file(path)
    except (OSError, ValueError, RuntimeError) as exc:
        raise LoadError(f"Could not read {table} from {path}: {exc}") from exc
    gdf.columns = [c.strip() for c in gdf.columns.astype(str)]
    return gdf


def load_neighbourhoods(path: str) -> gpd.GeoDataFrame:
    """
    Loads the neighbourhood boundaries, keeping only features with both names.

    The Inside Airbnb geometry file contains a couple of features without a
    neighbourhood name; they are not neighbourhoods and are dropped here.

    Args:
        path (str): Path to neighbourhoods.geojson.

    Returns:
        gpd.GeoDataFrame: Columns `neighbourhood`, `neighbourhood_group`, `geometry`.
    """
    gdf = _read_geometry(path, "neighbourhoods")
    require_columns(gdf, NEIGHBOURHOOD_COLUMNS, "neighbourhoods")
    named = gdf.dropna(subset=NEIGHBOURHOOD_COLUMNS)
    dropped = len(gdf) - len(named)
    if dropped:
        logger.info("Dropped %d neighbourhood feature(s) without a name.", dropped)
    named = named[NEIGHBOURHOOD_COLUMNS + ["geometry"]].reset_index(drop=True)
    named["neighbourhood"] = named["neighbourhood"].astype(str)
    named["neighbourhood_group"] = named["neighbourhood_group"].astype(str)
    if named["neighbourhood"].duplicated().any():
        duplicates = sorted(named.loc[named["neighbourhood"].duplicated(), "neighbourhood"].unique())
        raise LoadError(f"neighbourhoods contain duplicate names: {', '.join(duplicates)}")
    return named


def largest_waterways(waterways: gpd.GeoDataFrame, n: int = 400) -> gpd.GeoDataFrame:
    """
    Keeps the n largest waterway polygons.

    Uses the `area` property when the file provides one and the geometric area
    otherwise. Ties keep their file order.
    """
    if "area" in waterways.columns:
        area = pd.to_numeric(waterways["area"], errors="coerce")
    else:
        area = waterways.geometry.area
    order = area.sort_values(ascending=False, kind="stable").index[:n]
    return waterways.loc[order].reset_index(drop=True)


def load_waterways(path: str, n: int = 400) -> gpd.GeoDataFrame:
    """Loads the waterway polygons and keeps the n largest for display."""
    waterways = _read_geometry(path, "waterways")
    largest = largest_waterways(waterways, n)
    logger.info("Kept %d of %d waterway features.", len(largest), len(waterways))
    return largest
