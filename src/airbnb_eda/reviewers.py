# reviewers.py

"""
Per-reviewer aggregation of the reviews table.

This module contains:
- summarize_reviewers / multi_reviewers / top_reviewers: Review counts per
  reviewer and the subsets the report looks at.
- reviewer_timeline: Monthly activity of one reviewer.
- join_reviews_to_listings: Attaches listing attributes to reviews.
- accommodates_breakdown, price_bin_breakdown, neighbourhood_visits,
  host_concentration: Breakdowns of a reviewer's (or any) joined reviews.
- comment_lengths: Comment length per review, for comparing reviewers.
- reviewer_profile: All of the above for a single reviewer.
"""

import logging
from typing import Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from airbnb_eda.errors import JoinGapLog, report_join_gap

logger = logging.getLogger(__name__)

PRICE_BIN_EDGES = [0, 25, 50, 75, 100, 125, 150]


def summarize_reviewers(reviews: pd.DataFrame) -> pd.DataFrame:
    """
    Counts the reviews submitted by each reviewer.

    Rows keep the order in which each reviewer first appears in `reviews`,
    which is what top_reviewers uses to break ties.
    """
    counts = reviews.groupby("reviewer_id", sort=False).size()
    return counts.rename("count_reviews").reset_index().astype({"count_reviews": "int64"})


def multi_reviewers(reviewer_summary: pd.DataFrame) -> pd.DataFrame:
    """Reviewers who submitted more than one review."""
    return reviewer_summary[reviewer_summary["count_reviews"] > 1].reset_index(drop=True)


def top_reviewers(reviewer_summary: pd.DataFrame, k: int = 10) -> pd.DataFrame:
    """
    Returns the k reviewers with the most reviews.

    Reviewers with equal counts keep their order in reviewer_summary (first
    encounter in the reviews table), so the result is the same on every run.
    """
    ranked = reviewer_summary.sort_values("count_reviews", ascending=False, kind="stable")
    return ranked.head(k).reset_index(drop=True)


def reviewer_timeline(reviews: pd.DataFrame, reviewer_id: str) -> pd.DataFrame:
    """
    Counts a reviewer's reviews per calendar month.

    Months without reviews are not listed.

    Returns:
        pd.DataFrame: `period` ("YYYY-MM") and `count_reviews`, sorted by period.
    """
    own = reviews[reviews["reviewer_id"] == reviewer_id]
    periods = own["date"].dt.strftime("%Y-%m")
    return (
        periods.value_counts(sort=False)
        .rename_axis("period")
        .rename("count_reviews")
        .sort_index()
        .reset_index()
    )


def join_reviews_to_listings(
    reviews: pd.DataFrame,
    listings: pd.DataFrame,
    gap_log: JoinGapLog = None,
    join_name: str = "reviews->listings",
) -> pd.DataFrame:
    """
    Inner-joins reviews to listings on `listing_id` = `id`.

    Reviews of listings missing from the snapshot (listings not bookable at
    scrape time) are dropped and reported as a join gap.

    Returns:
        pd.DataFrame: Review columns (`id` renamed to `review_id`) plus `host_id`,
            `neighbourhood`, `property_type`, `price` and `accommodates`.
    """
    listing_cols = listings[["id", "host_id", "neighbourhood", "property_type", "price", "accommodates"]]
    listing_cols = listing_cols.rename(columns={"id": "listing_id"})
    joined = reviews.rename(columns={"id": "review_id"}).merge(listing_cols, on="listing_id", how="inner")

    unmatched = reviews.loc[~reviews["listing_id"].isin(set(listings["id"])), "listing_id"]
    report_join_gap(join_name, int(len(unmatched)), unmatched, gap_log)
    return joined


def accommodates_breakdown(joined: pd.DataFrame) -> pd.DataFrame:
    """Reviews per listing capacity (`accommodates`), sorted by capacity."""
    return (
        joined.groupby("accommodates", sort=True)
        .size()
        .rename("count_reviews")
        .reset_index()
    )


def price_bin_labels(edges: List[float] = PRICE_BIN_EDGES) -> List[str]:
    labels = [f"({lo:g}, {hi:g}]" for lo, hi in zip(edges[:-1], edges[1:])]
    return labels + [f"({edges[-1]:g}, inf)"]


def price_bin_breakdown(joined: pd.DataFrame, edges: List[float] = PRICE_BIN_EDGES) -> pd.DataFrame:
    """
    Reviews per nightly-price bin.

    The bins are right-closed, the first one also takes a price of exactly 0,
    and the last one is open-ended. Every bin is listed, with 0 when empty.
    """
    labels = price_bin_labels(edges)
    bins = pd.cut(
        joined["price"],
        bins=list(edges) + [np.inf],
        labels=labels,
        right=True,
        include_lowest=True,
    )
    counts = bins.value_counts(sort=False)
    counts.index = counts.index.astype(str)
    counts = counts.reindex(labels, fill_value=0)
    return pd.DataFrame({"price_bin": labels, "count_reviews": counts.to_numpy(dtype="int64")})


def neighbourhood_visits(joined: pd.DataFrame) -> pd.DataFrame:
    """Reviews per neighbourhood, most visited first (ties by name)."""
    visits = joined.groupby("neighbourhood", sort=True).size().rename("count_reviews").reset_index()
    return visits.sort_values("count_reviews", ascending=False, kind="stable").reset_index(drop=True)


def host_concentration(joined: pd.DataFrame) -> pd.DataFrame:
    """
    Reviews per listing, grouped by host.

    A reviewer who keeps reviewing listings of the same host may be a sign of
    fake reviews. Such hosts get `repeat_host` = True; the table only reports
    the pattern.

    Returns:
        pd.DataFrame: `host_id`, `listing_id`, `count_reviews`, `host_reviews`,
            `host_listings` and `repeat_host`, busiest hosts first.
    """
    per_listing = (
        joined.groupby(["host_id", "listing_id"], sort=True)
        .size()
        .rename("count_reviews")
        .reset_index()
    )
    by_host = per_listing.groupby("host_id")
    per_listing["host_reviews"] = by_host["count_reviews"].transform("sum").astype("int64")
    per_listing["host_listings"] = by_host["listing_id"].transform("size").astype("int64")
    per_listing["repeat_host"] = per_listing["host_reviews"] > 1
    return per_listing.sort_values(
        ["host_reviews", "host_id", "count_reviews"], ascending=[False, True, False], kind="stable"
    ).reset_index(drop=True)


def comment_lengths(reviews: pd.DataFrame, reviewer_ids: Optional[Iterable[str]] = None) -> pd.DataFrame:
    """
    Character length of every review comment.

    A missing comment counts as length 0 and is marked with `has_comment` =
    False, so reviewers who often leave the comment empty still show up.

    Args:
        reviews (pd.DataFrame): Normalized reviews.
        reviewer_ids (iterable, optional): Only keep these reviewers, in this order.

    Returns:
        pd.DataFrame: `reviewer_id`, `review_id`, `comment_length`, `has_comment`.
    """
    subset = reviews
    if reviewer_ids is not None:
        reviewer_ids = list(reviewer_ids)
        subset = reviews[reviews["reviewer_id"].isin(reviewer_ids)]
        order = {r: i for i, r in enumerate(reviewer_ids)}
        subset = subset.iloc[subset["reviewer_id"].map(order).argsort(kind="stable")]

    has_comment = subset["comments"].notna()
    lengths = subset["comments"].where(has_comment, "").astype(str).str.len()
    return pd.DataFrame({
        "reviewer_id": subset["reviewer_id"].to_numpy(),
        "review_id": subset["id"].to_numpy(),
        "comment_length": lengths.to_numpy(dtype="int64"),
        "has_comment": has_comment.to_numpy(dtype=bool),
    })


def reviewer_profile(
    reviews: pd.DataFrame,
    listings: pd.DataFrame,
    reviewer_id: str,
    price_edges: List[float] = PRICE_BIN_EDGES,
    gap_log: JoinGapLog = None,
) -> Dict[str, pd.DataFrame]:
    """
    Collects every per-reviewer table for one reviewer.

    Returns:
        dict: `timeline`, `accommodates`, `price_bins`, `neighbourhoods`,
            `hosts` and `comments` tables.
    """
    own = reviews[reviews["reviewer_id"] == reviewer_id]
    joined = join_reviews_to_listings(own, listings, gap_log=gap_log, join_name=f"reviews->listings[{reviewer_id}]")
    logger.info("Reviewer %s: %d reviews, %d matched to listings.", reviewer_id, len(own), len(joined))
    return {
        "timeline": reviewer_timeline(own, reviewer_id),
        "accommodates": accommodates_breakdown(joined),
        "price_bins": price_bin_breakdown(joined, price_edges),
        "neighbourhoods": neighbourhood_visits(joined),
        "hosts": host_concentration(joined),
        "comments": comment_lengths(own),
    }
