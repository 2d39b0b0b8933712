"""
Tests for the preview geometry resolver.
"""

import pytest

from lumen.preview import geometry
from lumen.preview.models import Frame, PreviewPolicy, Size


class TestFit:
    """Test aspect-preserving fit."""

    def test_matching_aspect(self):
        assert geometry.compute_fit(Size(4000, 3000), Size(800, 600)) == Size(800, 600)

    def test_portrait_in_landscape_viewport(self):
        fit = geometry.compute_fit(Size(3000, 4000), Size(800, 600))
        assert fit.height == 600
        assert fit.width == pytest.approx(450)

    def test_wide_image_limited_by_width(self):
        fit = geometry.compute_fit(Size(6000, 2000), Size(800, 600))
        assert fit.width == 800
        assert fit.height == pytest.approx(800 / 3)

    @pytest.mark.parametrize("natural,viewport", [
        (None, Size(800, 600)),
        (Size(4000, 3000), None),
        (Size(0, 3000), Size(800, 600)),
        (Size(4000, 3000), Size(800, 0)),
    ])
    def test_unknown_or_empty(self, natural, viewport):
        assert geometry.compute_fit(natural, viewport) is None


class TestZoomScale:
    """Test zoom scale derivation."""

    def test_fit_to_window(self):
        assert geometry.compute_zoom_scale(False, 25) == 1.0

    def test_zoom_percent(self):
        assert geometry.compute_zoom_scale(True, 50) == 2.0

    def test_zero_percent_guarded(self):
        assert geometry.compute_zoom_scale(True, 0) == 100.0


class TestTargetResolution:
    """Test the long-edge pixel budget."""

    def test_example_at_rest(self):
        fit = geometry.compute_fit(Size(4000, 3000), Size(800, 600))
        assert geometry.compute_target_resolution(fit, Size(800, 600)) == 800

    def test_device_pixel_ratio(self):
        assert geometry.compute_target_resolution(Size(800, 600), Size(800, 600),
                                                  device_pixel_ratio=2) == 1600

    def test_floor(self):
        assert geometry.compute_target_resolution(Size(200, 150), Size(200, 150)) == 480

    def test_ceiling(self):
        # 100 * zoom 10 = 1000, ceiling 5 * 100
        assert geometry.compute_target_resolution(Size(100, 50), Size(100, 50),
                                                  zoom_scale=10) == 500

    def test_interacting_cap(self):
        target = geometry.compute_target_resolution(Size(800, 600), Size(800, 600),
                                                    device_pixel_ratio=2, is_interacting=True)
        assert target == 1120

    def test_interacting_minimum_cap(self):
        target = geometry.compute_target_resolution(Size(1000, 750), Size(1000, 750),
                                                    is_interacting=True)
        assert target == 960

    def test_interacting_below_cap_unchanged(self):
        target = geometry.compute_target_resolution(Size(800, 600), Size(800, 600),
                                                    is_interacting=True)
        assert target == 800

    def test_uses_viewport_before_measurement(self):
        assert geometry.compute_target_resolution(None, Size(1000, 700)) == 1000

    def test_unmeasured_defaults(self):
        assert geometry.compute_target_resolution(None, Size(0, 0)) == 1280
        assert geometry.compute_target_resolution(None, None, is_interacting=True) == 720

    def test_policy_override(self):
        policy = PreviewPolicy(floor_resolution=1000)
        assert geometry.compute_target_resolution(Size(800, 600), Size(800, 600),
                                                  policy=policy) == 1000


class TestFrame:
    """Test placement and coordinate conversion."""

    def test_centered(self):
        frame = geometry.compute_frame(Size(450, 600), Size(800, 600))
        assert frame == Frame(width=450, height=600, left=175, top=0)

    def test_zoomed_overflows(self):
        frame = geometry.compute_frame(Size(800, 600), Size(800, 600), zoom_scale=2)
        assert frame == Frame(width=1600, height=1200, left=-400, top=-300)

    def test_no_fit(self):
        assert geometry.compute_frame(None, Size(800, 600)) is None

    def test_to_normalized(self):
        frame = Frame(width=450, height=600, left=175, top=0)
        assert geometry.to_normalized((175 + 225, 300), frame) == (0.5, 0.5)

    def test_to_normalized_clamps(self):
        frame = Frame(width=400, height=300, left=200, top=150)
        assert geometry.to_normalized((0, 1000), frame) == (0.0, 1.0)

    def test_to_normalized_without_frame(self):
        assert geometry.to_normalized((10, 10), None) is None


class TestRenderOptions:
    """Test request options derived from interaction state."""

    def test_progressive_floor(self):
        assert geometry.compute_progressive_floor(800) == 420
        assert geometry.compute_progressive_floor(2000) == 800

    def test_at_rest(self):
        options = geometry.resolve_render_options(800, is_scrubbing=False, zoom_enabled=False)
        assert options.max_dimension == 800
        assert options.debounce_ms == 80
        assert not options.progressive
        assert not options.skip_high

    def test_zoomed(self):
        options = geometry.resolve_render_options(1600, is_scrubbing=False, zoom_enabled=True)
        assert options.progressive
        assert options.progressive_floor == 640
        assert not options.skip_high

    def test_scrubbing(self):
        options = geometry.resolve_render_options(1120, is_scrubbing=True, zoom_enabled=False)
        assert options.debounce_ms == 8
        assert options.progressive
        assert options.skip_high

    def test_resolve_everything(self):
        result = geometry.resolve(Size(800, 600), Size(4000, 3000))
        assert result.fit == Size(800, 600)
        assert result.frame == Frame(width=800, height=600, left=0, top=0)
        assert result.zoom_scale == 1.0
        assert result.target_resolution == 800
        assert result.options.max_dimension == 800
