"""Image normalization for the asset proxy."""

from .normalizer import ImageConstraints, ImageNormalizer, NormalizedImage

__all__ = ["ImageConstraints", "ImageNormalizer", "NormalizedImage"]
