# build_report.py

"""
Builds the neighbourhood and reviewer report for one Inside Airbnb city snapshot.

Loads the raw files, derives every table the charts use, writes the tables as
CSV (plus a JSON summary of the rows dropped by joins) and renders the figures.

Usage:
    python -m airbnb_eda.build_report --data-dir data/amsterdam --output-path reports/amsterdam
"""

import argparse
import json
import logging
import os
import sys
from collections import OrderedDict
from typing import Dict, List, Optional

import geopandas as gpd
import matplotlib
import pandas as pd

from airbnb_eda.categorization import (
    add_host_type,
    add_property_category,
    host_types_by_neighbourhood,
    summarize_by_column,
)
from airbnb_eda.config import config as default_config
from airbnb_eda.config import load_config
from airbnb_eda.data_processing import normalize_listings, normalize_reviews
from airbnb_eda.errors import JoinGapLog, LoadError, MalformedPriceError
from airbnb_eda.loaders import find_raw, load_listings, load_neighbourhoods, load_reviews, load_waterways
from airbnb_eda.neighbourhoods import (
    compare_summaries,
    coverage_gaps,
    reviewed_listings,
    summarize_neighbourhoods,
)
from airbnb_eda.reviewers import (
    comment_lengths,
    join_reviews_to_listings,
    multi_reviewers,
    neighbourhood_visits,
    reviewer_profile,
    summarize_reviewers,
    top_reviewers,
)

logger = logging.getLogger(__name__)


def build_report_tables(
    listings: pd.DataFrame,
    reviews: pd.DataFrame,
    neighbourhoods: gpd.GeoDataFrame,
    waterways: Optional[gpd.GeoDataFrame] = None,
    config: Optional[dict] = None,
    gap_log: Optional[JoinGapLog] = None,
) -> Dict[str, pd.DataFrame]:
    """
    Derives every report table from the normalized inputs.

    Neighbourhood, property and host tables use the reviewed-only view; the
    all-listings summary is kept for the before/after comparison.

    Args:
        listings (pd.DataFrame): Normalized listings.
        reviews (pd.DataFrame): Normalized reviews.
        neighbourhoods (gpd.GeoDataFrame): Named neighbourhood boundaries.
        waterways (gpd.GeoDataFrame, optional): Waterway polygons for the maps.
        config (dict, optional): Report configuration; defaults to the module config.
        gap_log (JoinGapLog, optional): Collects the rows dropped by joins.

    Returns:
        OrderedDict: Table name -> DataFrame, in a fixed order.
    """
    config = config or default_config
    tables: Dict[str, pd.DataFrame] = OrderedDict()

    # --- Neighbourhoods: all listings vs. reviewed-only ---
    reviewed = reviewed_listings(listings)
    logger.info("%s of %s listings have at least one review.", f"{len(reviewed):,}", f"{len(listings):,}")
    tables["neighbourhoods_all"] = summarize_neighbourhoods(listings, neighbourhoods, gap_log)
    tables["neighbourhoods_reviewed"] = summarize_neighbourhoods(
        reviewed, neighbourhoods, gap_log, join_name="reviewed listings->neighbourhoods"
    )
    tables["neighbourhood_comparison"] = compare_summaries(
        tables["neighbourhoods_all"], tables["neighbourhoods_reviewed"]
    )
    gaps = coverage_gaps(tables["neighbourhoods_all"], tables["neighbourhoods_reviewed"])
    if gaps:
        logger.info("Neighbourhoods without any reviewed listing: %s", ", ".join(gaps))
    tables["coverage_gaps"] = pd.DataFrame({"neighbourhood": pd.Series(gaps, dtype=object)})

    # --- Property categories and host types (reviewed-only) ---
    categorized = add_property_category(
        reviewed,
        entire_home_types=config["ENTIRE_HOME_TYPES"],
        boat_types=config["BOAT_TYPES"],
    )
    categorized = add_host_type(categorized)
    tables["property_categories"] = summarize_by_column(categorized, "property_category")
    tables["host_types"] = summarize_by_column(categorized, "host_type")
    tables["host_types_by_neighbourhood"] = host_types_by_neighbourhood(reviewed)

    # --- Reviewers ---
    reviewer_summary = summarize_reviewers(reviews)
    tables["reviewers"] = reviewer_summary
    tables["multi_reviewers"] = multi_reviewers(reviewer_summary)
    top = top_reviewers(reviewer_summary, config["TOP_K_REVIEWERS"])
    tables["top_reviewers"] = top

    joined = join_reviews_to_listings(reviews, listings, gap_log)
    tables["review_neighbourhoods"] = neighbourhood_visits(joined)

    for reviewer_id in top["reviewer_id"]:
        profile = reviewer_profile(
            reviews, listings, reviewer_id, price_edges=config["PRICE_BIN_EDGES"], gap_log=gap_log
        )
        for name, table in profile.items():
            if name != "comments":
                tables[f"reviewer_{reviewer_id}_{name}"] = table
    tables["top_reviewer_comments"] = comment_lengths(reviews, top["reviewer_id"])

    if waterways is not None:
        tables["waterways"] = waterways
    return tables


def save_artifacts(tables: Dict[str, pd.DataFrame], output_path: str, gap_log: Optional[JoinGapLog] = None) -> List[str]:
    """
    Writes each table to `<output_path>/tables/<name>.csv` and the join gaps to
    `<output_path>/join_gaps.json`. Geometries are written as WKT.

    Returns:
        list: Paths of the written files.
    """
    table_dir = os.path.join(output_path, "tables")
    os.makedirs(table_dir, exist_ok=True)
    written = []
    for name, table in tables.items():
        if isinstance(table, gpd.GeoDataFrame):
            table = pd.DataFrame(table).assign(geometry=table.geometry.to_wkt())
        path = os.path.join(table_dir, f"{name}.csv")
        table.to_csv(path, index=False)
        written.append(path)

    gaps_path = os.path.join(output_path, "join_gaps.json")
    with open(gaps_path, "w") as f:
        json.dump(gap_log.to_dict() if gap_log is not None else {}, f, indent=4, sort_keys=True)
    written.append(gaps_path)

    logger.info("Artifacts successfully saved to %s", output_path)
    return written


def run_report(config: dict, render: bool = True) -> Dict[str, pd.DataFrame]:
    """Loads the raw files named in config, builds the tables and writes the report."""
    data_dir = config["DATA_DIR"]
    listings = normalize_listings(load_listings(find_raw(data_dir, config["LISTINGS_FILE"])))
    reviews = normalize_reviews(load_reviews(find_raw(data_dir, config["REVIEWS_FILE"])))
    neighbourhoods = load_neighbourhoods(os.path.join(data_dir, config["NEIGHBOURHOODS_FILE"]))
    waterways = None
    if config.get("WATERWAYS_FILE"):
        waterways = load_waterways(os.path.join(data_dir, config["WATERWAYS_FILE"]), config["N_WATERWAYS"])

    gap_log = JoinGapLog()
    tables = build_report_tables(listings, reviews, neighbourhoods, waterways, config, gap_log)
    save_artifacts(tables, config["OUTPUT_PATH"], gap_log)

    if render:
        from airbnb_eda.plotting import render_figures

        render_figures(
            tables,
            os.path.join(config["OUTPUT_PATH"], "figures"),
            neighbourhoods=neighbourhoods,
            dpi=config["FIGURE_DPI"],
        )
    return tables


def main(argv: Optional[List[str]] = None) -> int:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(description="Build the neighbourhood and reviewer report from Inside Airbnb data")
    parser.add_argument("--data-dir", dest="data_dir")
    parser.add_argument("--output-path", dest="output_path")
    parser.add_argument("--config", dest="config_path", help="JSON file overriding the default configuration")
    parser.add_argument("--city", dest="city")
    parser.add_argument("--top-k", type=int, dest="top_k")
    parser.add_argument("--n-waterways", type=int, dest="n_waterways")
    parser.add_argument("--no-figures", action="store_true", dest="no_figures")
    parser.add_argument("--log-level", default="INFO", dest="log_level")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = load_config(
            args.config_path,
            CITY=args.city,
            DATA_DIR=args.data_dir,
            OUTPUT_PATH=args.output_path,
            TOP_K_REVIEWERS=args.top_k,
            N_WATERWAYS=args.n_waterways,
        )
        if not args.no_figures:
            # Figures are only written to files; never open a window.
            matplotlib.use("Agg")
        run_report(config, render=not args.no_figures)
    except (LoadError, MalformedPriceError) as exc:
        logger.error("Report generation failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
