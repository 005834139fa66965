"""Tests for the rastermap.colorscale module."""

import numpy as np
import pytest

from rastermap.colorscale import ColorScale


class TestSequential:
    """Tests for sequential color scales."""

    def test_monotone_along_colormap(self):
        scale = ColorScale.sequential("Greys", (0.0, 10.0))
        lightness = [sum(scale.color(v)[:3]) for v in (0, 2.5, 5, 7.5, 10)]
        assert lightness == sorted(lightness, reverse=True)

    def test_clips_outside_domain(self):
        scale = ColorScale.sequential("viridis", (0.0, 1.0))
        assert scale.color(-5) == scale.color(0)
        assert scale.color(5) == scale.color(1)

    def test_flat_domain(self):
        """A zero-width domain maps to the bottom of the colormap."""
        scale = ColorScale.sequential("viridis", (2.0, 2.0))
        assert scale.color(2.0) == scale.color(1.0)

    def test_decreasing_domain_rejected(self):
        with pytest.raises(ValueError):
            ColorScale.sequential("viridis", (1.0, 0.0))

    def test_colors_array(self):
        scale = ColorScale.sequential("viridis", (0.0, 1.0))
        colors = scale.colors([0.0, 0.5, 1.0])
        assert colors.shape == (3, 4)
        assert np.allclose(colors[0], scale.color(0.0))

    def test_with_domain(self):
        scale = ColorScale.sequential("magma", (0.0, 1.0))
        other = scale.with_domain((0.0, 4.0))
        assert other.cmap == "magma"
        assert other.domain == (0.0, 4.0)
        assert scale.domain == (0.0, 1.0)


class TestCategorical:
    """Tests for categorical color scales."""

    def test_distinct_colors(self):
        scale = ColorScale.categorical(["theft", "robbery", "burglary"])
        colors = {scale.color(c) for c in scale.categories}
        assert len(colors) == 3
        assert not scale.is_sequential
        assert scale.domain == (0.0, 2.0)

    def test_unknown_category_gets_default(self):
        scale = ColorScale.categorical(["a"])
        assert scale.color("zzz", default="black") == (0.0, 0.0, 0.0, 1.0)

    def test_more_categories_than_palette(self):
        """Qualitative palettes repeat once they run out of colors."""
        scale = ColorScale.categorical(range(15), cmap="tab10")
        assert len({scale.color(c) for c in range(10)}) == 10
        assert scale.color(10) == scale.color(0)

    def test_continuous_cmap(self):
        scale = ColorScale.categorical(range(15), cmap="viridis")
        assert len({scale.color(c) for c in range(15)}) == 15

    def test_colors_shape(self):
        scale = ColorScale.categorical(["a", "b"])
        assert scale.colors(["a", "b", None]).shape == (3, 4)

    def test_with_domain_is_noop(self):
        scale = ColorScale.categorical(["a", "b"])
        assert scale.with_domain((0, 9)) is scale
