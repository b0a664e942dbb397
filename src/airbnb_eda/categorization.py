# categorization.py

"""
Derived listing categories: property category from the free-text property
type, and host type from how many listings a host has in the current view.

Both are plain functions over the tables they are given. Host type in
particular depends on the scope it is computed on, so it is recomputed for
every view instead of being stored on the listings table.
"""

from enum import Enum
from typing import Iterable, Optional

import pandas as pd

SERVICED_MARKER = "serviced"
ENTIRE_MARKER = "Entire"
ENTIRE_HOME_TYPES = frozenset({"Tiny home", "Treehouse", "Castle", "Hut", "Island"})
BOAT_TYPES = frozenset({"Boat", "Houseboat"})


class PropertyCategory(str, Enum):
    SERVICED_HOME = "Serviced home"
    ENTIRE_HOME = "Entire home"
    BOAT = "Boat"
    OTHER = "Other"


class HostType(str, Enum):
    MULTI = "Multi-accommodation host"
    SINGLE = "Single-accommodation host"


def get_property_category(
    property_type,
    entire_home_types: Iterable[str] = ENTIRE_HOME_TYPES,
    boat_types: Iterable[str] = BOAT_TYPES,
) -> PropertyCategory:
    """
    Classifies a property type string; the first matching rule wins.

    1. Serviced home: contains "serviced" (case-sensitive).
    2. Entire home: contains "Entire", or is one of the entire-home types
       (tiny homes, treehouses, castles, huts, islands).
    3. Boat: is exactly "Boat" or "Houseboat".
    4. Other: everything else, including a missing value.
    """
    if not isinstance(property_type, str):
        return PropertyCategory.OTHER
    if SERVICED_MARKER in property_type:
        return PropertyCategory.SERVICED_HOME
    if ENTIRE_MARKER in property_type or property_type in set(entire_home_types):
        return PropertyCategory.ENTIRE_HOME
    if property_type in set(boat_types):
        return PropertyCategory.BOAT
    return PropertyCategory.OTHER


def add_property_category(
    listings: pd.DataFrame,
    entire_home_types: Iterable[str] = ENTIRE_HOME_TYPES,
    boat_types: Iterable[str] = BOAT_TYPES,
) -> pd.DataFrame:
    """Returns a copy of listings with a `property_category` column."""
    entire_home_types, boat_types = frozenset(entire_home_types), frozenset(boat_types)
    out = listings.copy()
    out["property_category"] = [
        get_property_category(t, entire_home_types, boat_types).value for t in out["property_type"]
    ]
    return out


def classify_host_types(listings: pd.DataFrame) -> pd.Series:
    """
    Tags each listing with the type of its host within this set of listings.

    A host with more than one listing in `listings` is a multi-accommodation
    host for every one of those listings. The same host can be single in a
    narrower view (one neighbourhood) and multi city-wide.

    Args:
        listings (pd.DataFrame): The scoped view; must have a `host_id` column.

    Returns:
        pd.Series: Host type values aligned to the index of listings.
    """
    per_host = listings["host_id"].map(listings["host_id"].value_counts())
    host_types = per_host.gt(1).map({True: HostType.MULTI.value, False: HostType.SINGLE.value})
    return host_types.astype(object).rename("host_type")


def add_host_type(listings: pd.DataFrame) -> pd.DataFrame:
    """Returns a copy of listings with a `host_type` column scoped to listings itself."""
    out = listings.copy()
    out["host_type"] = classify_host_types(out)
    return out


def host_types_by_neighbourhood(listings: pd.DataFrame, neighbourhood: Optional[str] = None) -> pd.DataFrame:
    """
    Classifies hosts separately inside each neighbourhood and counts the result.

    Args:
        listings (pd.DataFrame): Listings with `neighbourhood`, `host_id`, `id`
            and `price` columns.
        neighbourhood (str, optional): Only classify this neighbourhood. A host
            with one listing here is single even if it has more elsewhere.

    Returns:
        pd.DataFrame: Columns `neighbourhood`, `host_type`, `count_listings`,
            `avg_price`, sorted by neighbourhood and host type.
    """
    if neighbourhood is not None:
        listings = listings[listings["neighbourhood"] == neighbourhood]
    scoped = [add_host_type(group) for _, group in listings.groupby("neighbourhood", sort=True)]
    if not scoped:
        return pd.DataFrame(columns=["neighbourhood", "host_type", "count_listings", "avg_price"])
    tagged = pd.concat(scoped)
    return (
        tagged.groupby(["neighbourhood", "host_type"], sort=True)
        .agg(count_listings=("id", "size"), avg_price=("price", "mean"))
        .reset_index()
    )


def summarize_by_column(listings: pd.DataFrame, column: str) -> pd.DataFrame:
    """
    Aggregates listings per value of a derived column such as
    `property_category` or `host_type`.

    Returns:
        pd.DataFrame: `column`, `count_listings`, `count_reviews`, `avg_price`
            and `share` (fraction of listings), sorted by `column`.
    """
    summary = (
        listings.groupby(column, sort=True)
        .agg(
            count_listings=("id", "size"),
            count_reviews=("number_of_reviews", "sum"),
            avg_price=("price", "mean"),
        )
        .reset_index()
    )
    total = summary["count_listings"].sum()
    summary["share"] = summary["count_listings"] / total if total else 0.0
    return summary
