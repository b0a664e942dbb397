# data_processing.py

"""
Turns the raw listings and reviews tables into typed, analysis-ready frames.

This module contains:
- parse_price / clean_price_column: Convert "$1,234.00"-style strings to floats,
  raising MalformedPriceError instead of silently coercing bad values.
- as_identifier: Keeps id columns as opaque strings.
- normalize_listings: Builds the Listing table from the raw listings columns,
  taking the neighbourhood fields from their "cleansed" variants.
- normalize_reviews: Builds the Review table with calendar dates.
"""

import logging
import math
import re

import numpy as np
import pandas as pd

from airbnb_eda.errors import LoadError, MalformedPriceError
from airbnb_eda.loaders import LISTING_COLUMNS, REVIEW_COLUMNS, parse_review_dates, require_columns

logger = logging.getLogger(__name__)

PRICE_SYMBOLS = r"[$,]"
LISTING_FIELDS = [
    "id", "host_id", "neighbourhood", "neighbourhood_group",
    "property_type", "price", "accommodates", "number_of_reviews",
]
REVIEW_FIELDS = ["id", "listing_id", "reviewer_id", "date", "comments"]


def parse_price(text) -> float:
    """
    Parses a single formatted price such as "$1,234.00".

    Args:
        text: The raw price value.

    Returns:
        float: The non-negative price.

    Raises:
        MalformedPriceError: If the value is missing, not numeric after removing
            "$" and ",", not finite, or negative.
    """
    if text is None or (isinstance(text, float) and math.isnan(text)):
        raise MalformedPriceError("Price is missing.")
    cleaned = re.sub(PRICE_SYMBOLS, "", str(text)).strip()
    # Same parser as clean_price_column, so both accept the same strings.
    try:
        value = float(pd.to_numeric(cleaned, errors="raise"))
    except (ValueError, TypeError):
        raise MalformedPriceError(f"Price {text!r} is not a number.") from None
    if not math.isfinite(value) or value < 0:
        raise MalformedPriceError(f"Price {text!r} is not a non-negative number.")
    return value


def clean_price_column(
    df: pd.DataFrame, source_column: str = "price", output_column: str = "price", id_column: str = "id"
) -> pd.DataFrame:
    """
    Cleans a currency string column and converts it to a float.

    Unlike a plain numeric cast, any value that does not parse is reported: one
    bad price would otherwise shift every neighbourhood average it belongs to.

    Args:
        df (pd.DataFrame): Frame holding the raw price strings. It is not modified.
        source_column (str): Column with the formatted prices.
        output_column (str): Column to write the parsed floats to.
        id_column (str): Column used to name the offending rows in the error.

    Returns:
        pd.DataFrame: A copy of df with the parsed price column.

    Raises:
        MalformedPriceError: If any price is missing, non-numeric or negative.
    """
    raw = df[source_column]
    cleaned = raw.where(raw.isna(), raw.astype(str).str.replace(PRICE_SYMBOLS, "", regex=True).str.strip())
    values = pd.to_numeric(cleaned, errors="coerce").astype(float)

    bad = ~np.isfinite(values) | (values < 0)
    if bad.any():
        bad_ids = df.loc[bad, id_column].astype(str).tolist() if id_column in df.columns else []
        sample = ", ".join(f"{i}={v!r}" for i, v in zip(bad_ids[:5], raw[bad].tolist()[:5]))
        raise MalformedPriceError(
            f"{int(bad.sum()):,} price value(s) could not be parsed ({sample})", listing_ids=bad_ids
        )

    out = df.copy()
    out[output_column] = values
    return out


def as_identifier(series: pd.Series) -> pd.Series:
    """
    Returns an identifier column as plain strings.

    Integer columns are converted digit-for-digit. Float columns are rejected
    because a large id stored as a float may already have lost digits.
    """
    if pd.api.types.is_float_dtype(series):
        raise LoadError(f"Identifier column '{series.name}' was read as floats; read it as text instead.")
    if pd.api.types.is_integer_dtype(series):
        return series.astype(str)
    return series.where(series.isna(), series.astype(str).str.strip())


def _as_count(series: pd.Series, minimum: int = 0) -> pd.Series:
    try:
        values = pd.to_numeric(series, errors="raise").astype(float)
    except (ValueError, TypeError) as exc:
        raise LoadError(f"Column '{series.name}' must hold whole numbers: {exc}") from exc
    bad = values.isna() | (values != np.floor(values)) | (values < minimum)
    if bad.any():
        raise LoadError(
            f"Column '{series.name}' must hold whole numbers >= {minimum}; "
            f"got {series[bad].head(5).tolist()}."
        )
    return values.astype(np.int64)


def normalize_listings(raw_listings: pd.DataFrame) -> pd.DataFrame:
    """
    Applies all cleaning and type conversion to the raw listings table.

    The plain `neighbourhood` and `neighbourhood_group` columns are empty in the
    Inside Airbnb export, so both are taken from their `_cleansed` variants.

    Args:
        raw_listings (pd.DataFrame): Raw listings with at least the loader columns.

    Returns:
        pd.DataFrame: One row per listing with the Listing fields and dtypes.
    """
    require_columns(raw_listings, LISTING_COLUMNS, "listings")
    priced = clean_price_column(raw_listings)

    listings = pd.DataFrame({
        "id": as_identifier(raw_listings["id"]),
        "host_id": as_identifier(raw_listings["host_id"]),
        "neighbourhood": raw_listings["neighbourhood_cleansed"],
        "neighbourhood_group": raw_listings["neighbourhood_group_cleansed"],
        "property_type": raw_listings["property_type"],
        "price": priced["price"],
        "accommodates": _as_count(raw_listings["accommodates"], minimum=1),
        "number_of_reviews": _as_count(raw_listings["number_of_reviews"]),
    })[LISTING_FIELDS].reset_index(drop=True)

    if listings["id"].duplicated().any():
        raise LoadError(f"listings contain {int(listings['id'].duplicated().sum())} duplicate id(s).")
    logger.info("Normalized %s listings.", f"{len(listings):,}")
    return listings


def normalize_reviews(raw_reviews: pd.DataFrame) -> pd.DataFrame:
    """
    Converts the raw reviews table to the Review fields.

    Identifiers become strings and `date` becomes a calendar date (midnight
    timestamp). Missing comments stay missing; the reviewer analysis decides
    how to count them.
    """
    require_columns(raw_reviews, REVIEW_COLUMNS, "reviews")
    dates = parse_review_dates(raw_reviews).dt.normalize()

    reviews = pd.DataFrame({
        "id": as_identifier(raw_reviews["id"]),
        "listing_id": as_identifier(raw_reviews["listing_id"]),
        "reviewer_id": as_identifier(raw_reviews["reviewer_id"]),
        "date": dates,
        "comments": raw_reviews["comments"],
    })[REVIEW_FIELDS].reset_index(drop=True)
    logger.info("Normalized %s reviews.", f"{len(reviews):,}")
    return reviews
