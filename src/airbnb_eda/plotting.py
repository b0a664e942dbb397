"""
Contains all visualization functions for the neighbourhood and reviewer report.

Every function draws one derived table onto a given matplotlib axis; none of
them computes anything the pipeline has not already produced.
"""

import logging
import os
from typing import Dict, List

import geopandas as gpd
import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

logger = logging.getLogger(__name__)

METRIC_TITLES = {
    "count_listings": "Number of listings",
    "count_reviews": "Number of reviews",
    "avg_price": "Average price per night ($)",
}


def plot_neighbourhood_map(
    summary: gpd.GeoDataFrame,
    column: str,
    ax,
    neighbourhoods: gpd.GeoDataFrame = None,
    waterways: gpd.GeoDataFrame = None,
    title: str = None,
):
    """Choropleth of a neighbourhood metric, with missing neighbourhoods hatched grey."""
    if neighbourhoods is not None:
        neighbourhoods.plot(ax=ax, color="lightgrey", edgecolor="white", hatch="//", linewidth=0.5)
    if not summary.empty:
        summary.plot(column=column, ax=ax, cmap="viridis", legend=True, edgecolor="white", linewidth=0.5)
    if waterways is not None and not waterways.empty:
        if summary.crs is not None and waterways.crs is not None and waterways.crs != summary.crs:
            waterways = waterways.to_crs(summary.crs)
        waterways.plot(ax=ax, color="#7fb3d5", linewidth=0)
    ax.set_title(title or METRIC_TITLES.get(column, column))
    ax.set_axis_off()


def plot_filter_comparison(comparison: pd.DataFrame, ax, top_n: int = 20):
    """Average price per neighbourhood before and after removing never-reviewed listings."""
    plot_df = comparison.sort_values("avg_price_all", ascending=False, kind="stable").head(top_n)
    long_df = plot_df.melt(
        id_vars="neighbourhood",
        value_vars=["avg_price_all", "avg_price_reviewed"],
        var_name="view",
        value_name="avg_price",
    )
    long_df["view"] = long_df["view"].map({"avg_price_all": "All listings", "avg_price_reviewed": "Reviewed only"})
    sns.barplot(data=long_df, y="neighbourhood", x="avg_price", hue="view", ax=ax, palette="Set2")
    ax.set_title("Average price per neighbourhood: all vs. reviewed listings")
    ax.set_xlabel("Average price per night ($)")
    ax.set_ylabel("")
    ax.grid(axis="x", linestyle="--", alpha=0.7)


def plot_group_summary(summary: pd.DataFrame, column: str, ax, title: str = None):
    """Bar chart of listing count with the average price annotated, one bar per group."""
    if summary.empty:
        ax.set_title(title or f"No listings per {column.replace('_', ' ')}")
        return
    barplot = sns.barplot(data=summary, x=column, y="count_listings", ax=ax, color="skyblue")
    for patch, price in zip(barplot.patches, summary["avg_price"]):
        ax.annotate(f"${price:,.0f}", (patch.get_x() + patch.get_width() / 2, patch.get_height()),
                    ha="center", va="bottom", fontsize=9)
    ax.set_title(title or f"Listings per {column.replace('_', ' ')} (label: average price)")
    ax.set_xlabel("")
    ax.set_ylabel("Number of listings")


def plot_reviewer_timeline(timeline: pd.DataFrame, reviewer_id: str, ax):
    """Reviews per month for one reviewer."""
    ax.bar(timeline["period"], timeline["count_reviews"], color="salmon")
    ax.set_title(f"Reviews per month, reviewer {reviewer_id}")
    ax.set_xlabel("Month")
    ax.set_ylabel("Reviews")
    ax.tick_params(axis="x", rotation=90)


def plot_breakdown(breakdown: pd.DataFrame, column: str, ax, title: str):
    """Reviews per category of a reviewer breakdown (price bin, capacity, neighbourhood)."""
    ax.set_title(title)
    if breakdown.empty:
        return
    sns.barplot(data=breakdown, x=column, y="count_reviews", ax=ax, color="purple")
    ax.set_xlabel(column.replace("_", " ").capitalize())
    ax.set_ylabel("Reviews")
    ax.tick_params(axis="x", rotation=45)


def plot_comment_lengths(lengths: pd.DataFrame, ax):
    """Boxplot of comment length per reviewer."""
    sns.boxplot(data=lengths, x="reviewer_id", y="comment_length", ax=ax, color="skyblue")
    ax.set_title("Comment length per reviewer")
    ax.set_xlabel("Reviewer")
    ax.set_ylabel("Characters")
    ax.tick_params(axis="x", rotation=45)


def _save(fig, out_dir: str, filename: str, dpi: int) -> str:
    out_path = os.path.join(out_dir, filename)
    fig.tight_layout()
    fig.savefig(out_path, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    logger.info("Wrote %s", out_path)
    return out_path


def render_figures(
    tables: Dict[str, pd.DataFrame],
    out_dir: str,
    neighbourhoods: gpd.GeoDataFrame = None,
    dpi: int = 150,
) -> List[str]:
    """
    Renders the report figures from the derived tables into out_dir.

    Returns:
        list: Paths of the written PNG files.
    """
    os.makedirs(out_dir, exist_ok=True)
    sns.set_style("whitegrid")
    written = []
    waterways = tables.get("waterways")

    for view in ("all", "reviewed"):
        summary = tables[f"neighbourhoods_{view}"]
        fig, axes = plt.subplots(1, 3, figsize=(21, 7))
        for ax, column in zip(axes, ["count_listings", "count_reviews", "avg_price"]):
            plot_neighbourhood_map(summary, column, ax, neighbourhoods=neighbourhoods, waterways=waterways)
        fig.suptitle("All listings" if view == "all" else "Listings with at least one review", fontsize=16)
        written.append(_save(fig, out_dir, f"neighbourhoods_{view}.png", dpi))

    if not tables["neighbourhood_comparison"].empty:
        fig, ax = plt.subplots(figsize=(12, 9))
        plot_filter_comparison(tables["neighbourhood_comparison"], ax)
        written.append(_save(fig, out_dir, "neighbourhood_comparison.png", dpi))

    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(16, 6))
    plot_group_summary(tables["property_categories"], "property_category", ax1)
    plot_group_summary(tables["host_types"], "host_type", ax2)
    written.append(_save(fig, out_dir, "categories_and_hosts.png", dpi))

    for reviewer_id in tables["top_reviewers"]["reviewer_id"]:
        prefix = f"reviewer_{reviewer_id}"
        fig, axes = plt.subplots(2, 2, figsize=(16, 12))
        plot_reviewer_timeline(tables[f"{prefix}_timeline"], reviewer_id, axes[0, 0])
        plot_breakdown(tables[f"{prefix}_price_bins"], "price_bin", axes[0, 1], "Reviews per price bin")
        plot_breakdown(tables[f"{prefix}_accommodates"], "accommodates", axes[1, 0], "Reviews per capacity")
        plot_breakdown(tables[f"{prefix}_neighbourhoods"], "neighbourhood", axes[1, 1], "Reviews per neighbourhood")
        written.append(_save(fig, out_dir, f"{prefix}.png", dpi))

    if not tables["top_reviewer_comments"].empty:
        fig, ax = plt.subplots(figsize=(14, 6))
        plot_comment_lengths(tables["top_reviewer_comments"], ax)
        written.append(_save(fig, out_dir, "comment_lengths.png", dpi))
    return written
