"""
Built-in looks offered in the preset list.
"""

from typing import Optional, Tuple

from .models import GlobalAdjustments, Preset

PRESETS: Tuple[Preset, ...] = (
    Preset(
        name="Clean Contrast",
        mood="Neutral",
        notes="Crisp whites, gentle black lift, subtle clarity.",
        globals=GlobalAdjustments(exposure_ev=0.0, contrast=8, highlights=-6, shadows=10,
                                  whites=6, blacks=-8, temp=0, tint=0, vibrance=10, saturation=4),
    ),
    Preset(
        name="Warm Film",
        mood="Filmic",
        notes="Amber warmth with a soft roll-off in highlights.",
        globals=GlobalAdjustments(exposure_ev=0.1, contrast=-4, highlights=-8, shadows=6,
                                  whites=4, blacks=-6, temp=12, tint=2, vibrance=8, saturation=6),
    ),
    Preset(
        name="Cool Fade",
        mood="Chill",
        notes="Blue lift in shadows with a matte curve.",
        globals=GlobalAdjustments(exposure_ev=-0.05, contrast=-6, highlights=-4, shadows=12,
                                  whites=-2, blacks=8, temp=-10, tint=0, vibrance=6, saturation=-4),
    ),
    Preset(
        name="B&W Matte",
        mood="Monochrome",
        notes="Soft contrast with lifted blacks for portrait-friendly BW.",
        globals=GlobalAdjustments(exposure_ev=0.0, contrast=-2, highlights=-6, shadows=8,
                                  whites=-4, blacks=14, temp=0, tint=0, vibrance=-100, saturation=-100),
    ),
    Preset(
        name="Golden Hour",
        mood="Glow",
        notes="Warm highlights with gentle saturation for sunsets.",
        globals=GlobalAdjustments(exposure_ev=0.15, contrast=4, highlights=-6, shadows=6,
                                  whites=8, blacks=-4, temp=18, tint=4, vibrance=12, saturation=10),
    ),
)

# Intensity slider bounds offered next to the preset list (200% = double strength)
INTENSITY_RANGE = (0.0, 2.0)


def get_preset(name: str) -> Optional[Preset]:
    """Look up a built-in preset by name (case-insensitive)."""
    wanted = name.strip().lower()
    for preset in PRESETS:
        if preset.name.lower() == wanted:
            return preset
    return None
