"""
HueSort Error Taxonomy
Per-image failures are recovered at the record level; export failures are
surfaced to the caller as user-visible messages.
"""


class HueSortError(Exception):
    """Base class for all HueSort errors."""
    pass


class DecodeError(HueSortError):
    """The byte stream could not be interpreted as a supported raster image."""
    pass


class UnsupportedContext(HueSortError):
    """The drawing surface needed for downsampling could not be allocated."""
    pass


class EmptyBatch(HueSortError):
    """Export requested with zero non-error records."""

    def __init__(self, message: str = "No successfully analyzed images to export"):
        super().__init__(message)


class ExportError(HueSortError):
    """Archive or animation assembly failed."""
    pass
