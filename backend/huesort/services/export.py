"""
HueSort Export
Builds a ZIP archive or an animated GIF from an ordered batch.

Exports only read records; a failed export never touches computed
signatures, so retrying does not require reprocessing.
"""
import io
import zipfile
from typing import List, Sequence, Set

from loguru import logger
from PIL import Image

from huesort.config import config
from huesort.exceptions import DecodeError, EmptyBatch, ExportError
from huesort.models import ImageRecord, split_name
from huesort.services.imaging import decode_image, target_dimensions


def exportable(records: Sequence[ImageRecord]) -> List[ImageRecord]:
    """Non-error records that have an assigned name, in order."""
    return [record for record in records if not record.is_error and record.assigned_name]


def _unique_name(name: str, used: Set[str]) -> str:
    if name not in used:
        return name
    stem, ext = split_name(name)
    counter = 2
    while f"{stem} ({counter}){ext}" in used:
        counter += 1
    return f"{stem} ({counter}){ext}"


def build_zip(records: Sequence[ImageRecord]) -> bytes:
    """
    Archive each exportable record's original bytes under its assigned name.

    Raises:
        EmptyBatch: If no record can be exported
    """
    valid = exportable(records)
    if not valid:
        raise EmptyBatch()

    buffer = io.BytesIO()
    used: Set[str] = set()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for record in valid:
            name = _unique_name(record.assigned_name, used)
            used.add(name)
            archive.writestr(name, record.data)

    logger.info(f"Built ZIP with {len(valid)} entries ({buffer.tell()} bytes)")
    return buffer.getvalue()


def build_animation(records: Sequence[ImageRecord], frame_duration_ms: int = None,
                    max_edge: int = None) -> bytes:
    """
    Build a looping GIF with one frame per exportable record.

    Each frame is scaled so its longer edge is at most ``max_edge`` and
    centered on a transparent canvas sized to the largest scaled frame.

    Raises:
        EmptyBatch: If no record can be exported
        ExportError: If a frame cannot be decoded or the GIF cannot be encoded
    """
    if frame_duration_ms is None:
        frame_duration_ms = config.GIF_FRAME_MS
    if max_edge is None:
        max_edge = config.GIF_MAX_EDGE

    valid = exportable(records)
    if not valid:
        raise EmptyBatch()

    scaled: List[Image.Image] = []
    try:
        for record in valid:
            try:
                image = decode_image(record.data).convert("RGBA")
            except DecodeError as e:
                raise ExportError(f"Failed to load image: {record.original_name} ({e})")
            size = target_dimensions(image.width, image.height, max_edge)
            if size != image.size:
                image = image.resize(size, Image.Resampling.LANCZOS)
            scaled.append(image)

        canvas_width = max(image.width for image in scaled)
        canvas_height = max(image.height for image in scaled)
        logger.info(f"Creating GIF with {len(scaled)} frames at {canvas_width}x{canvas_height}")

        frames = []
        for image in scaled:
            frame = Image.new("RGBA", (canvas_width, canvas_height), (0, 0, 0, 0))
            offset = ((canvas_width - image.width) // 2, (canvas_height - image.height) // 2)
            frame.paste(image, offset, image)
            frames.append(frame)

        buffer = io.BytesIO()
        try:
            frames[0].save(
                buffer,
                format="GIF",
                save_all=True,
                append_images=frames[1:],
                duration=frame_duration_ms,
                loop=0,
                disposal=2,
            )
        except (OSError, ValueError) as e:
            raise ExportError(f"Failed to encode GIF: {e}")
        return buffer.getvalue()
    finally:
        for image in scaled:
            image.close()
