# config.py

"""
Central configuration file for the neighbourhood and reviewer analysis report.

This file contains the file names, category rules, bin edges and display
settings used across the pipeline. Modifying these values (or passing a JSON
override file to the report script) allows the same report to be produced for
another city snapshot.
"""

import copy
import json
import os
from typing import Any, Dict, Optional

from airbnb_eda.errors import LoadError

config = {
    # --- Data and Environment ---
    "CITY": "amsterdam",
    "DATA_DIR": "./data/amsterdam",
    "OUTPUT_PATH": "./reports/amsterdam",
    "LISTINGS_FILE": "listings",        # resolved as listings.csv.gz or listings.csv
    "REVIEWS_FILE": "reviews",
    "NEIGHBOURHOODS_FILE": "neighbourhoods.geojson",
    "WATERWAYS_FILE": "waterways.geojson",

    # --- Property categories ---
    "ENTIRE_HOME_TYPES": ["Tiny home", "Treehouse", "Castle", "Hut", "Island"],
    "BOAT_TYPES": ["Boat", "Houseboat"],

    # --- Reviewer analysis ---
    "TOP_K_REVIEWERS": 10,
    "PRICE_BIN_EDGES": [0, 25, 50, 75, 100, 125, 150],

    # --- Maps & Figures ---
    "N_WATERWAYS": 400,
    "FIGURE_DPI": 150,
}


def load_config(file_path: Optional[str] = None, **overrides: Any) -> Dict[str, Any]:
    """
    Returns a copy of the default configuration updated from a JSON file and
    keyword overrides (applied in that order).

    Args:
        file_path (str, optional): Path to a JSON object whose keys replace the
            matching default keys.
        **overrides: Individual keys to replace last, e.g. from the command line.
            Keys whose value is None are ignored.

    Returns:
        dict: The merged configuration.

    Raises:
        LoadError: If the file is missing, is not valid JSON, or names a key
            that the configuration does not define.
    """
    merged = copy.deepcopy(config)
    if file_path is not None:
        if not os.path.exists(file_path):
            raise LoadError(f"Config file not found: {file_path}")
        try:
            with open(file_path, "r") as f:
                file_values = json.load(f)
        except json.JSONDecodeError as exc:
            raise LoadError(f"Invalid JSON format in config file {file_path}: {exc}") from exc
        if not isinstance(file_values, dict):
            raise LoadError(f"Config file {file_path} must contain a JSON object.")
        unknown = sorted(set(file_values) - set(merged))
        if unknown:
            raise LoadError(f"Unknown config keys in {file_path}: {', '.join(unknown)}")
        merged.update(file_values)

    merged.update({k: v for k, v in overrides.items() if v is not None})
    return merged
