"""
HueSort API Schemas
Pydantic models for batch sorting, reordering and export request/response validation.
"""
from typing import List, Optional

from pydantic import BaseModel, Field

from huesort.models import ColorSignature, ImageRecord, Progress


class HealthResponse(BaseModel):
    """Health check response."""
    ok: bool = Field(True, description="Service health status")
    version: str = Field(..., description="Service version")
    service: str = Field("huesort", description="Service name")


class ErrorResponse(BaseModel):
    """Error response."""
    detail: str = Field(..., description="Error message")


# ============================================================================
# SORTING SCHEMAS
# ============================================================================

class SignatureModel(BaseModel):
    """Dominant color signature of one image."""
    hue: float = Field(..., description="Hue in degrees [0, 360); 999 marks a neutral image")
    chroma: float = Field(..., ge=0.0, le=1.0, description="Normalized chroma, 0 = achromatic")
    lightness: float = Field(..., ge=0.0, le=1.0, description="Normalized lightness")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Diagnostic confidence, not used for ordering")
    neutral: bool = Field(False, description="Whether the image was classified neutral/gray")
    hex: Optional[str] = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$", description="Swatch color")

    @classmethod
    def from_signature(cls, signature: ColorSignature, hex_color: Optional[str] = None) -> "SignatureModel":
        return cls(hex=hex_color, **signature.to_dict())

    def to_signature(self) -> ColorSignature:
        return ColorSignature(
            hue=self.hue, chroma=self.chroma, lightness=self.lightness, confidence=self.confidence
        )


class RecordModel(BaseModel):
    """One image of a processed batch."""
    id: str = Field(..., description="Identity derived from name, size and modification time")
    original_name: str = Field(..., description="Uploaded file name")
    assigned_name: Optional[str] = Field(None, description="Output file name after ordering")
    preview: Optional[str] = Field(None, description="Opaque preview handle")
    signature: Optional[SignatureModel] = Field(None, description="Dominant color, absent on failure")
    error: Optional[str] = Field(None, description="Failure description, absent on success")

    @classmethod
    def from_record(cls, record: ImageRecord, hex_color: Optional[str] = None) -> "RecordModel":
        return cls(
            id=record.id,
            original_name=record.original_name,
            assigned_name=record.assigned_name,
            preview=record.preview,
            signature=SignatureModel.from_signature(record.signature, hex_color) if record.signature else None,
            error=record.error,
        )

    def to_record(self) -> ImageRecord:
        return ImageRecord(
            id=self.id,
            original_name=self.original_name,
            data=b"",
            preview=self.preview,
            signature=self.signature.to_signature() if self.signature else None,
            assigned_name=self.assigned_name,
            error=self.error,
        )


class ProgressModel(BaseModel):
    """Batch progress counter."""
    current: int = Field(..., ge=0)
    total: int = Field(..., ge=0)

    @classmethod
    def from_progress(cls, progress: Progress) -> "ProgressModel":
        return cls(current=progress.current, total=progress.total)


class HistogramBin(BaseModel):
    """One bar of the hue distribution chart."""
    label: str
    hue: float = Field(..., description="Bin center hue in degrees")
    count: int = Field(..., ge=0)


class SortResponse(BaseModel):
    """Ordered batch with names, signatures and failures."""
    strategy: str = Field(..., description="Analysis strategy used")
    template: str = Field(..., description="Filename template applied")
    records: List[RecordModel] = Field(..., description="Sorted records followed by failed ones")
    progress: ProgressModel
    histogram: List[HistogramBin] = Field(default_factory=list, description="Hue distribution of the batch")
    swatch_png_b64: Optional[str] = Field(None, description="Base64 PNG strip of the sorted colors")


class ReorderRequest(BaseModel):
    """Manual move of one record within the current ordering."""
    items: List[RecordModel] = Field(..., min_length=1, description="Current ordering as returned by /v1/sort")
    from_index: int = Field(..., ge=0, description="Position of the record to move")
    to_index: int = Field(..., ge=0, description="Position to reinsert it at")


class ReorderResponse(BaseModel):
    """Ordering after a manual move, with regenerated names."""
    records: List[RecordModel]
