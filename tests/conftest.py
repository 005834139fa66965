"""Shared pytest fixtures for rastermap tests."""

import io
import tempfile
from pathlib import Path

import numpy as np
import pandas as pd
import pytest
from PIL import Image

from rastermap.area_definitions import Region
from rastermap.data_sources import Mosaic, OSMProvider

BASE_COLOR = (200, 220, 240, 255)


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def region():
    """A small Houston-sized region at street zoom."""
    return Region(-95.40, 29.70, -95.30, 29.80, 14)


@pytest.fixture
def mosaic(region):
    """A plain 256x256 Mosaic covering ``region`` exactly."""
    return Mosaic(Image.new("RGBA", (256, 256), BASE_COLOR), region, "osm", "standard")


@pytest.fixture
def corner_records(region):
    """Four records on the corners of the region and one in its middle."""
    lons = [region.min_lon, region.max_lon, region.min_lon, region.max_lon, -95.35]
    lats = [region.min_lat, region.min_lat, region.max_lat, region.max_lat, 29.75]
    return pd.DataFrame({"longitude": lons, "latitude": lats,
                         "category": ["a", "b", "a", "b", "a"]})


@pytest.fixture
def crime_records():
    """Clustered records in three offense categories."""
    rng = np.random.default_rng(0)
    frames = []
    for offense, (lon, lat) in {"theft": (-95.37, 29.76),
                                "robbery": (-95.33, 29.72),
                                "burglary": (-95.35, 29.77)}.items():
        frames.append(pd.DataFrame({
            "longitude": rng.normal(lon, 0.008, 60),
            "latitude": rng.normal(lat, 0.008, 60),
            "category": offense,
        }))
    return pd.concat(frames, ignore_index=True)


def png_bytes(size=(256, 256), color=(10, 20, 30, 255)):
    buf = io.BytesIO()
    Image.new("RGBA", size, color).save(buf, format="PNG")
    return buf.getvalue()


class CountingProvider(OSMProvider):
    """OSM provider that returns a canned Mosaic and counts fetches."""

    def __init__(self, mosaic, **kwargs):
        super().__init__(**kwargs)
        self.mosaic = mosaic
        self.calls = 0

    def fetch(self, region, style):
        self.validate_style(style)
        self.calls += 1
        return self.mosaic


@pytest.fixture
def counting_provider(mosaic):
    return CountingProvider(mosaic)
