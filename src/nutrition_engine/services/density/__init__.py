"""Density table for volume-to-weight conversion."""

from nutrition_engine.services.density.service import DensityService, VolumeWeight


__all__ = [
    "DensityService",
    "VolumeWeight",
]
