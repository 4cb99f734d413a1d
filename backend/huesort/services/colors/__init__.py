"""
HueSort Colors Module

Provides color space conversions and the dominant color strategies that
reduce an image to a single hue/chroma/lightness signature.
"""

__version__ = "1.0.0"
