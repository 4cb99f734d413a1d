"""
HueSort Identity Utilities
Record identities, batch ids and synthetic preview handles.
"""
import uuid
from datetime import datetime


def record_id(name: str, size: int, modified: float) -> str:
    """
    Stable identity of an input file within a batch.

    Two files with the same name, size and modification time share an id.
    """
    mtime = int(modified) if float(modified).is_integer() else modified
    return f"{name}-{size}-{mtime}"


def generate_batch_id() -> str:
    """
    Generate a unique batch ID for log correlation.

    Returns:
        Unique batch ID string
    """
    timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
    short_uuid = str(uuid.uuid4())[:8]
    return f"batch-{timestamp}-{short_uuid}"


def generate_preview_handle() -> str:
    """Opaque handle a UI layer can map to a thumbnail of the record."""
    timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
    short_uuid = str(uuid.uuid4())[:8]
    return f"preview-{timestamp}-{short_uuid}"
