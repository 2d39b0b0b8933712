"""
Preview geometry resolver.

Pure functions turning viewport size, natural image size, zoom state, device
pixel ratio and interaction state into a render resolution budget and an
on-screen placement rectangle. Nothing here holds state; callers re-run the
functions whenever an input changes.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from .models import Frame, PreviewPolicy, RenderOptions, Size

DEFAULT_POLICY = PreviewPolicy()


def compute_fit(natural: Optional[Size], viewport: Optional[Size]) -> Optional[Size]:
    """
    Scale ``natural`` to fit inside ``viewport`` preserving aspect ratio.

    Returns:
        Fitted size, or None when either size is unknown or has a zero dimension
    """
    if natural is None or viewport is None or natural.is_empty or viewport.is_empty:
        return None
    aspect = natural.width / natural.height
    width = viewport.width
    height = width / aspect
    if height > viewport.height:
        height = viewport.height
        width = height * aspect
    return Size(width, height)


def compute_zoom_scale(zoom_enabled: bool, zoom_percent: float) -> float:
    """1 when fitting to the window, otherwise 100 / zoom percent."""
    if not zoom_enabled:
        return 1.0
    return 100.0 / max(zoom_percent, 1)


def compute_target_resolution(fit: Optional[Size], viewport: Optional[Size],
                              zoom_scale: float = 1.0, device_pixel_ratio: float = 1.0,
                              is_interacting: bool = False,
                              policy: PreviewPolicy = DEFAULT_POLICY) -> int:
    """
    Long-edge pixel budget for the next render request.

    The on-screen size (fit, or the raw viewport before the image has been
    measured) times zoom and device pixel ratio gives the physical target.
    It is clamped between the floor resolution and ``overres_multiplier``
    times the base long edge. While interacting the budget is further capped
    at ``max(raw * interacting_ratio, interacting_cap)``.
    """
    base = fit if fit is not None else viewport
    if base is None or base.is_empty:
        if is_interacting:
            return policy.unmeasured_interacting_resolution
        return policy.unmeasured_resolution

    dpr = device_pixel_ratio or 1.0
    raw_target = base.long_edge * zoom_scale * dpr
    render_cap = base.long_edge * policy.overres_multiplier
    target = min(max(raw_target, policy.floor_resolution), render_cap)

    if is_interacting:
        target = min(target, max(raw_target * policy.interacting_ratio, policy.interacting_cap))

    return int(round(target))


def compute_frame(fit: Optional[Size], viewport: Size, zoom_scale: float = 1.0) -> Optional[Frame]:
    """Center the zoomed fit size inside the viewport."""
    if fit is None:
        return None
    width = fit.width * zoom_scale
    height = fit.height * zoom_scale
    return Frame(
        width=width,
        height=height,
        left=(viewport.width - width) / 2,
        top=(viewport.height - height) / 2,
    )


def compute_progressive_floor(target: int, policy: PreviewPolicy = DEFAULT_POLICY) -> int:
    """Resolution of the fast pass that precedes ``target``."""
    return max(policy.progressive_floor_min, int(round(target * policy.progressive_floor_ratio)))


def to_normalized(point: Tuple[float, float], frame: Optional[Frame]) -> Optional[Tuple[float, float]]:
    """
    Convert a viewport-relative point into image-normalized coordinates.

    Points outside the image are clamped onto its edge.
    """
    if frame is None or frame.width <= 0 or frame.height <= 0:
        return None
    x = (point[0] - frame.left) / frame.width
    y = (point[1] - frame.top) / frame.height
    return (min(1.0, max(0.0, x)), min(1.0, max(0.0, y)))


def resolve_render_options(target: int, is_scrubbing: bool, zoom_enabled: bool,
                           policy: PreviewPolicy = DEFAULT_POLICY) -> RenderOptions:
    """
    Options for the preview controller.

    Zooming and scrubbing both want a fast pass first; scrubbing skips the
    full-resolution pass entirely and uses the short debounce.
    """
    debounce = policy.debounce_ms['interacting'] if is_scrubbing else policy.debounce_ms['rest']
    return RenderOptions(
        max_dimension=target,
        debounce_ms=debounce,
        progressive=zoom_enabled or is_scrubbing,
        progressive_floor=compute_progressive_floor(target, policy),
        skip_high=is_scrubbing,
    )


@dataclass(frozen=True)
class PreviewGeometry:
    """Everything resolved for one set of layout and interaction inputs."""
    fit: Optional[Size]
    frame: Optional[Frame]
    zoom_scale: float
    target_resolution: int
    options: RenderOptions


def resolve(viewport: Size, natural: Optional[Size], zoom_enabled: bool = False,
            zoom_percent: float = 100, device_pixel_ratio: float = 1.0,
            is_scrubbing: bool = False,
            policy: PreviewPolicy = DEFAULT_POLICY) -> PreviewGeometry:
    """Run the whole resolver for one set of inputs."""
    fit = compute_fit(natural, viewport)
    zoom_scale = compute_zoom_scale(zoom_enabled, zoom_percent)
    target = compute_target_resolution(fit, viewport, zoom_scale, device_pixel_ratio,
                                       is_scrubbing, policy)
    return PreviewGeometry(
        fit=fit,
        frame=compute_frame(fit, viewport, zoom_scale),
        zoom_scale=zoom_scale,
        target_resolution=target,
        options=resolve_render_options(target, is_scrubbing, zoom_enabled, policy),
    )
