"""
HueSort Batch Ordering
Sorts analyzed records into a hue gradient and assigns output file names.

Filename template tokens:
    {index}      1-based position
    {index:NN}   1-based position zero-padded to width NN
    {hue}        rounded hue in degrees
    {hue:NN}     rounded hue zero-padded to width NN
    {basename}   original name without its final extension

The original extension is always appended; unknown tokens are kept verbatim.
"""
import math
import re
from typing import List, Optional, Sequence, Tuple

from loguru import logger

from huesort.models import ColorSignature, ImageRecord, split_name

# Template used for names regenerated after a manual reorder
REORDER_TEMPLATE = "{index}_{basename}"

_TOKEN_RE = re.compile(r"\{(index|hue)(?::(\d+))?\}|\{basename\}")


def sort_key(signature: ColorSignature) -> Tuple[float, float, float]:
    """
    Ascending hue, then descending chroma, then descending lightness.

    Hues compare by exact equality; the neutral sentinel sorts after every
    real hue.
    """
    return signature.hue, -signature.chroma, -signature.lightness


def render_filename(template: str, index: int, signature: Optional[ColorSignature],
                    original_name: str) -> str:
    """
    Render ``template`` for the record at 1-based ``index``.

    Examples:
        >>> render_filename("{index:04}_{basename}", 2, None, "photo.JPG")
        '0002_photo.JPG'
    """
    basename, ext = split_name(original_name)

    def _substitute(match: re.Match) -> str:
        token, width = match.group(1), match.group(2)
        if token is None:
            return basename
        if token == "index":
            value = index
        elif signature is None:
            return match.group(0)
        else:
            value = int(math.floor(signature.hue + 0.5))
        return str(value).zfill(int(width)) if width else str(value)

    return _TOKEN_RE.sub(_substitute, template) + ext


def order(records: Sequence[ImageRecord], template: str,
          rename_neutral: bool = False) -> List[ImageRecord]:
    """
    Sort analyzed records and assign names from ``template``.

    Records without a signature (failed extraction) are appended after the
    sorted records in their original input order, unnamed. Neutral records
    sort last among the analyzed ones and keep their original name unless
    ``rename_neutral`` is set.

    Returns:
        New list of replacement records; inputs are not modified
    """
    sortable = [record for record in records if not record.is_error]
    failed = [record for record in records if record.is_error]

    # sorted() is stable, so equal keys keep input order
    sortable.sort(key=lambda record: sort_key(record.signature))

    named: List[ImageRecord] = []
    position = 0
    for record in sortable:
        if record.signature.is_neutral and not rename_neutral:
            named.append(record.with_name(record.original_name))
            continue
        position += 1
        named.append(record.with_name(
            render_filename(template, position, record.signature, record.original_name)
        ))

    logger.info(
        f"Ordered {len(sortable)} records "
        f"({sum(1 for r in sortable if r.signature.is_neutral)} neutral), "
        f"{len(failed)} failed"
    )
    return named + [record.with_name(None) for record in failed]


def reorder(records: Sequence[ImageRecord], from_index: int, to_index: int) -> List[ImageRecord]:
    """
    Move one record within the current ordering and regenerate names.

    The record at ``from_index`` is removed and reinserted at ``to_index``
    (splice, not swap). Indices address the analyzed records only; failed
    records stay appended. Every analyzed record is renamed with
    ``REORDER_TEMPLATE`` from its new position. Signatures are untouched.

    Raises:
        IndexError: If either index is outside the analyzed records
    """
    sortable = [record for record in records if not record.is_error]
    failed = [record for record in records if record.is_error]

    for name, value in (("from_index", from_index), ("to_index", to_index)):
        if not 0 <= value < len(sortable):
            raise IndexError(f"{name} {value} out of range for {len(sortable)} records")

    if from_index == to_index:
        return list(records)

    moved = sortable.pop(from_index)
    sortable.insert(to_index, moved)

    renamed = [
        record.with_name(render_filename(REORDER_TEMPLATE, position, record.signature, record.original_name))
        for position, record in enumerate(sortable, start=1)
    ]
    logger.info(f"Manual reorder {from_index} -> {to_index} ({moved.original_name})")
    return renamed + failed
