# neighbourhoods.py

"""
Neighbourhood-level aggregation of listings.

All joins here use the neighbourhood name as an exact, case-sensitive key.
"""

import logging
from typing import List

import geopandas as gpd
import pandas as pd

from airbnb_eda.errors import JoinGapLog, report_join_gap

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = [
    "neighbourhood", "neighbourhood_group", "count_listings", "count_reviews", "avg_price", "geometry",
]


def reviewed_listings(listings: pd.DataFrame) -> pd.DataFrame:
    """
    Returns the listings with at least one review.

    Neighbourhoods with many never-reviewed listings give noisy average prices
    (a few expensive, inactive listings dominate), so this view is the basis of
    every neighbourhood and property comparison in the report.
    """
    return listings[listings["number_of_reviews"] > 0].copy()


def summarize_neighbourhoods(
    listings: pd.DataFrame,
    neighbourhoods: gpd.GeoDataFrame,
    gap_log: JoinGapLog = None,
    join_name: str = "listings->neighbourhoods",
) -> gpd.GeoDataFrame:
    """
    Computes listing counts, review totals and mean price per neighbourhood.

    The per-neighbourhood groups are inner-joined to the boundaries: a group
    whose name has no boundary is dropped and reported as a join gap, and a
    boundary without listings in this view is simply absent from the result.

    Args:
        listings (pd.DataFrame): Any view of the normalized listings.
        neighbourhoods (gpd.GeoDataFrame): The named neighbourhood boundaries.
        gap_log (JoinGapLog, optional): Collects the dropped listings.
        join_name (str): Name the dropped listings are recorded under.

    Returns:
        gpd.GeoDataFrame: One row per neighbourhood with at least one listing,
            sorted by neighbourhood name.
    """
    grouped = (
        listings.groupby("neighbourhood", sort=True)
        .agg(
            count_listings=("id", "size"),
            count_reviews=("number_of_reviews", "sum"),
            avg_price=("price", "mean"),
        )
        .reset_index()
    )

    # Listings without a neighbourhood name never form a group, so count them too.
    unmatched = listings.loc[~listings["neighbourhood"].isin(set(neighbourhoods["neighbourhood"])), "neighbourhood"]
    report_join_gap(join_name, int(len(unmatched)), unmatched.fillna("<missing>"), gap_log)

    summary = neighbourhoods[["neighbourhood", "neighbourhood_group", "geometry"]].merge(
        grouped, on="neighbourhood", how="inner"
    )
    summary = summary.sort_values("neighbourhood", kind="stable").reset_index(drop=True)
    summary["count_listings"] = summary["count_listings"].astype("int64")
    summary["count_reviews"] = summary["count_reviews"].astype("int64")
    summary["avg_price"] = summary["avg_price"].astype(float)

    if summary.empty:
        logger.info("No listings to summarize; returning an empty neighbourhood summary.")
    return gpd.GeoDataFrame(summary[SUMMARY_COLUMNS], geometry="geometry", crs=neighbourhoods.crs)


def coverage_gaps(full_summary: pd.DataFrame, filtered_summary: pd.DataFrame) -> List[str]:
    """Returns the neighbourhoods present in full_summary but absent from filtered_summary."""
    missing = set(full_summary["neighbourhood"]) - set(filtered_summary["neighbourhood"])
    return sorted(missing)


def compare_summaries(full_summary: pd.DataFrame, reviewed_summary: pd.DataFrame) -> pd.DataFrame:
    """
    Puts the all-listings and reviewed-only summaries side by side.

    Neighbourhoods that lose every listing to the filter keep their row with
    zero reviewed listings and a missing reviewed average.
    """
    columns = ["neighbourhood", "count_listings", "avg_price"]
    comparison = pd.DataFrame(full_summary[columns]).merge(
        pd.DataFrame(reviewed_summary[columns]),
        on="neighbourhood",
        how="left",
        suffixes=("_all", "_reviewed"),
    )
    comparison["count_listings_reviewed"] = comparison["count_listings_reviewed"].fillna(0).astype("int64")
    comparison["avg_price_change"] = comparison["avg_price_reviewed"] - comparison["avg_price_all"]
    return comparison.sort_values("neighbourhood", kind="stable").reset_index(drop=True)
