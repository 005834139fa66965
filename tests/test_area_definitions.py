"""Tests for the rastermap.area_definitions module."""

import math

import pytest

from rastermap import area_definitions as ad
from rastermap.area_definitions import BoundingBox, CenterZoom, Region
from rastermap.exceptions import InvalidRegion
from rastermap.records import Boundary


class TestFromBoundingBox:
    """Tests for bounding-box regions."""

    def test_valid_box(self):
        """from_bounding_box should keep the edges and zoom."""
        region = ad.from_bounding_box(-95.4, 29.7, -95.3, 29.8, 14)
        assert region.bbox == (-95.4, 29.7, -95.3, 29.8)
        assert region.zoom == 14

    @pytest.mark.parametrize("left,bottom,right,top", [
        (-95.3, 29.7, -95.4, 29.8),
        (-95.4, 29.7, -95.4, 29.8),
        (-95.4, 29.8, -95.3, 29.7),
        (-95.4, 29.7, -95.3, 29.7),
    ])
    def test_rejects_inverted_or_empty_box(self, left, bottom, right, top):
        """from_bounding_box should reject left >= right or bottom >= top."""
        with pytest.raises(InvalidRegion):
            ad.from_bounding_box(left, bottom, right, top, 14)

    @pytest.mark.parametrize("zoom", [2, 22, 0])
    def test_rejects_zoom_out_of_range(self, zoom):
        """Zoom levels outside 3-21 should be rejected."""
        with pytest.raises(InvalidRegion):
            ad.from_bounding_box(-95.4, 29.7, -95.3, 29.8, zoom)

    def test_rejects_fractional_zoom(self):
        with pytest.raises(InvalidRegion):
            ad.from_bounding_box(-95.4, 29.7, -95.3, 29.8, 10.5)

    def test_invalid_region_is_value_error(self):
        """InvalidRegion should be catchable as ValueError."""
        with pytest.raises(ValueError):
            Region(1, 0, 0, 1, 10)

    def test_region_is_hashable_and_immutable(self):
        """Regions should work as dict keys and refuse mutation."""
        a = Region(-95.4, 29.7, -95.3, 29.8, 14)
        b = Region(-95.4, 29.7, -95.3, 29.8, 14)
        assert {a: 1}[b] == 1
        with pytest.raises(Exception):
            a.zoom = 3


class TestFromCenterZoom:
    """Tests for center/zoom regions."""

    def test_box_surrounds_center(self):
        region = ad.from_center_zoom(-95.3698, 29.7604, 12)
        assert region.min_lon < -95.3698 < region.max_lon
        assert region.min_lat < 29.7604 < region.max_lat

    def test_extent_strictly_shrinks_with_zoom(self):
        """Higher zoom should give a strictly smaller box for fixed pixels."""
        spans = []
        for zoom in range(3, 22):
            region = ad.from_center_zoom(-95.3698, 29.7604, zoom, 640, 640)
            spans.append((region.max_lon - region.min_lon,
                          region.max_lat - region.min_lat))
        for (w1, h1), (w2, h2) in zip(spans, spans[1:]):
            assert w2 < w1
            assert h2 < h1

    def test_longitude_span_matches_tile_geometry(self):
        """640 pixels at zoom z should span 640 * 360 / (256 * 2**z) degrees."""
        region = ad.from_center_zoom(0.0, 0.0, 10, 640, 640)
        expected = 640 * 360 / (256 * 2**10)
        assert region.max_lon - region.min_lon == pytest.approx(expected, rel=1e-9)

    def test_rejects_bad_zoom(self):
        with pytest.raises(InvalidRegion):
            ad.from_center_zoom(-95.37, 29.76, 25)

    def test_rejects_center_off_map(self):
        with pytest.raises(InvalidRegion):
            ad.from_center_zoom(-95.37, 89.9, 10)


class TestResolve:
    """Tests for the tagged request variants."""

    def test_bounding_box_request(self):
        region = ad.resolve(BoundingBox(-95.4, 29.7, -95.3, 29.8, 13))
        assert region == Region(-95.4, 29.7, -95.3, 29.8, 13)

    def test_center_zoom_request(self):
        request = CenterZoom(-95.37, 29.76, 13, 320, 320)
        assert ad.resolve(request) == ad.from_center_zoom(-95.37, 29.76, 13, 320, 320)

    def test_region_passes_through(self, region):
        assert ad.resolve(region) is region

    def test_rejects_other_types(self):
        """resolve should not guess from loose tuples."""
        with pytest.raises(TypeError):
            ad.resolve((-95.4, 29.7, -95.3, 29.8, 13))


class TestHelpers:
    """Tests for make_bbox, calc_zoom and zoom_to_resolution_m."""

    def test_zoom_to_resolution_halves(self):
        assert ad.zoom_to_resolution_m(1) == pytest.approx(ad.zoom_to_resolution_m(0) / 2)
        assert ad.zoom_to_resolution_m(0) == pytest.approx(156543.03, rel=1e-6)

    def test_make_bbox_pads_range(self):
        left, bottom, right, top = ad.make_bbox([0, 10], [20, 40], f=0.1)
        assert (left, bottom, right, top) == pytest.approx((-1, 18, 11, 42))

    def test_make_bbox_ignores_nan(self):
        box = ad.make_bbox([0, float("nan"), 10], [0, 5, 10], f=0)
        assert box == pytest.approx((0, 0, 10, 10))

    def test_make_bbox_rejects_empty(self):
        with pytest.raises(InvalidRegion):
            ad.make_bbox([], [])

    def test_calc_zoom_grows_as_box_shrinks(self):
        big = ad.calc_zoom(-96, 29, -94, 31)
        small = ad.calc_zoom(-95.4, 29.7, -95.3, 29.8)
        assert small > big
        assert 3 <= big <= 21

    def test_calc_zoom_box_fits_two_tiles(self):
        zoom = ad.calc_zoom(-95.4, 29.7, -95.3, 29.8)
        assert 2 * 360 / 2**zoom >= 0.1

    def test_webmercator_round_trip(self):
        x, y = ad.lonlat_to_webmercator(-95.37, 29.76)
        lon, lat = ad.webmercator_to_lonlat(x, y)
        assert (lon, lat) == pytest.approx((-95.37, 29.76))


class TestFromBoundary:
    """Tests for neighbourhood lookups."""

    @pytest.fixture
    def boundaries(self):
        return [
            Boundary("Montrose", 24, [(-95.41, 29.73), (-95.38, 29.73),
                                      (-95.38, 29.76), (-95.41, 29.76)]),
            Boundary("Midtown", 32, [(-95.38, 29.73), (-95.36, 29.75),
                                     (-95.37, 29.76)]),
        ]

    def test_lookup_by_name(self, boundaries):
        region = ad.from_boundary(boundaries, "Montrose", zoom=14)
        assert region.bbox == pytest.approx((-95.41, 29.73, -95.38, 29.76))

    def test_lookup_by_numeric_id(self, boundaries):
        region = ad.from_boundary(boundaries, 32, zoom=14)
        assert region.bbox == pytest.approx((-95.38, 29.73, -95.36, 29.76))

    def test_zoom_guessed_when_missing(self, boundaries):
        region = ad.from_boundary(boundaries, "Midtown")
        assert region.zoom == ad.calc_zoom(-95.38, 29.73, -95.36, 29.76)

    def test_unknown_key(self, boundaries):
        with pytest.raises(InvalidRegion):
            ad.from_boundary(boundaries, "Atlantis", zoom=14)
