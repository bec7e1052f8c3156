from __future__ import annotations


class FireBurndateError(RuntimeError):
    """Base class for errors raised by this package."""


class ConfigurationError(FireBurndateError):
    """Inputs or collection identifiers are misconfigured."""


class MissingBand(ConfigurationError):
    def __init__(self, band: str, frame_id: str, available: tuple[str, ...] = ()) -> None:
        self.band = band
        self.frame_id = frame_id
        self.available = tuple(available)
        super().__init__(
            f"Frame {frame_id!r} has no band {band!r} (available: {', '.join(self.available) or 'none'})"
        )


class ResourceLimitExceeded(FireBurndateError):
    """Aggregation would touch more pixels than the configured budget.

    Carries the three inputs so callers can decide whether to coarsen the
    scale, shrink the geometry or raise the budget.
    """

    def __init__(
        self,
        *,
        geometry_area_m2: float,
        scale_m: float,
        max_pixels: int,
        estimated_pixels: float,
    ) -> None:
        self.geometry_area_m2 = geometry_area_m2
        self.scale_m = scale_m
        self.max_pixels = max_pixels
        self.estimated_pixels = estimated_pixels
        super().__init__(
            f"Too many pixels in region: ~{estimated_pixels:.0f} > max_pixels={max_pixels} "
            f"(geometry area {geometry_area_m2:.0f} m2 at scale {scale_m:g} m). "
            "Coarsen the scale, shrink the geometry or raise max_pixels."
        )
