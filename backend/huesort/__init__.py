"""
HueSort
Reorders batches of images by their dominant perceived color.
"""

__version__ = "1.0.0"
