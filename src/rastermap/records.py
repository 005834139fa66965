"""Geolocated record tables and boundary polygons.

Reading files is left to the caller; this module only normalises what
the caller hands over into the column layout the overlay engine reads.
"""
from dataclasses import dataclass
from typing import Any, Optional, Sequence

import numpy as np
import pandas as pd

COLUMNS = ["longitude", "latitude", "category"]


@dataclass(frozen=True)
class Record:
    """One geolocated observation."""

    longitude: float
    latitude: float
    category: Optional[str] = None
    timestamp: Any = None


@dataclass(frozen=True)
class Boundary:
    """A named neighbourhood polygon as ``(n, 2)`` lon/lat vertices."""

    name: str
    numeric_id: int
    polygon: Sequence


def as_frame(records, lon="longitude", lat="latitude", category="category"):
    """Normalise records into a DataFrame with longitude/latitude/category.

    Parameters
    ----------
    records : pandas.DataFrame or iterable of Record or None
        Input table.
    lon, lat, category : str, optional
        Source column names, renamed to the canonical ones.

    Returns
    -------
    pandas.DataFrame
        Copy with float ``longitude``/``latitude`` columns and an object
        ``category`` column. Rows with missing or non-numeric coordinates
        are dropped.
    """
    if records is None:
        return pd.DataFrame(columns=COLUMNS)
    if isinstance(records, pd.DataFrame):
        renames = {lon: "longitude", lat: "latitude", category: "category"}
        # A renamed source column replaces any column already under that name.
        shadowed = [name for source, name in renames.items()
                    if source != name and source in records.columns
                    and name in records.columns]
        df = records.drop(columns=shadowed).rename(columns=renames)
    else:
        df = pd.DataFrame([vars(r) if isinstance(r, Record) else dict(r)
                           for r in records])
        if df.empty:
            return pd.DataFrame(columns=COLUMNS)
    missing = {"longitude", "latitude"} - set(df.columns)
    if missing:
        raise KeyError(f"record table is missing columns: {sorted(missing)}")
    df = df.copy()
    if "category" not in df.columns:
        df["category"] = None
    df["longitude"] = pd.to_numeric(df["longitude"], errors="coerce").astype(float)
    df["latitude"] = pd.to_numeric(df["latitude"], errors="coerce").astype(float)
    df = df[np.isfinite(df["longitude"]) & np.isfinite(df["latitude"])]
    return df.reset_index(drop=True)


def groups(df, key="category"):
    """Split a record table by a categorical column.

    Categories keep their categorical order when the column is a pandas
    Categorical (empty categories included), otherwise they are sorted.
    Rows with a missing key are left out.
    """
    col = df[key]
    if isinstance(col.dtype, pd.CategoricalDtype):
        keys = list(col.cat.categories)
    else:
        keys = sorted(col.dropna().unique(), key=str)
    return {k: df[col == k] for k in keys}
