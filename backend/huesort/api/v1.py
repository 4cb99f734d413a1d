"""
HueSort v1 API Routes
Batch sorting, manual reordering and export endpoints.
"""
from typing import Any, Dict, List, Optional, Set, Tuple

from fastapi import APIRouter, File, HTTPException, Query, UploadFile
from fastapi.responses import Response
from loguru import logger

from huesort.config import Config
from huesort.exceptions import EmptyBatch, ExportError
from huesort.models import BatchResult, ImageSource, PipelineConfig
from huesort.schemas import (
    ErrorResponse, HistogramBin, ProgressModel, RecordModel, ReorderRequest, ReorderResponse,
    SortResponse,
)
from huesort.services.colors.swatches import hue_distribution, render_swatch_strip, signature_to_hex
from huesort.services.export import build_animation, build_zip
from huesort.services.ordering import reorder
from huesort.services.supervisor import ProcessingSupervisor
from huesort.utils.metrics import get_metrics

config = Config()
router = APIRouter(prefix="/v1", tags=["HueSort"])

STRATEGY_PATTERN = "^(histogram|perceptual|kmeans)$"

# Error bodies raised through HTTPException, for the OpenAPI schema
BAD_REQUEST = {400: {"model": ErrorResponse, "description": "Invalid upload or parameters"}}
EMPTY_BATCH = {422: {"model": ErrorResponse, "description": "No image could be exported"}}
EXPORT_FAILED = {500: {"model": ErrorResponse, "description": "Export encoding failed"}}


async def _read_sources(files: List[UploadFile]) -> List[ImageSource]:
    """Read uploads into pipeline sources, dropping repeated name+size pairs."""
    if not files:
        raise HTTPException(status_code=400, detail="At least one image file is required")
    if len(files) > config.MAX_BATCH_FILES:
        raise HTTPException(
            status_code=400,
            detail=f"Too many files. Maximum per batch: {config.MAX_BATCH_FILES}"
        )

    sources: List[ImageSource] = []
    seen: Set[Tuple[str, int]] = set()
    for upload in files:
        try:
            data = await upload.read()
        except Exception as e:
            raise HTTPException(status_code=400, detail=f"Failed to read file: {str(e)}")

        if len(data) > config.MAX_FILE_MB * 1024 * 1024:
            raise HTTPException(
                status_code=400,
                detail=f"File too large: {upload.filename}. Maximum size: {config.MAX_FILE_MB}MB"
            )

        name = upload.filename or f"image_{len(sources) + 1}"
        key = (name, len(data))
        if key in seen:
            logger.debug(f"Skipping duplicate upload {name}")
            continue
        seen.add(key)
        # Multipart uploads carry no modification time
        sources.append(ImageSource(data=data, name=name, size=len(data), modified=0))
    return sources


def _pipeline_config(strategy: str, template: Optional[str], rename_neutral: bool,
                     seed: Optional[int]) -> PipelineConfig:
    """Request parameters layered over the environment defaults."""
    template = template if template is not None else config.DEFAULT_TEMPLATE
    if not Config.validate_template(template):
        raise HTTPException(status_code=400, detail="template must be non-empty and contain no path separators")

    base = PipelineConfig.from_settings(config)
    pipeline = base.with_strategy(strategy, seed=seed if seed is not None else config.KMEANS_SEED)
    return PipelineConfig(
        strategy=pipeline.strategy,
        filename_template=template,
        max_dimension=base.max_dimension,
        alpha_threshold=base.alpha_threshold,
        rename_neutral=rename_neutral,
        max_concurrency=base.max_concurrency,
    )


async def _run(files: List[UploadFile], pipeline: PipelineConfig) -> BatchResult:
    sources = await _read_sources(files)
    return await ProcessingSupervisor(pipeline).run(sources)


def _record_models(records) -> List[RecordModel]:
    return [
        RecordModel.from_record(
            record, signature_to_hex(record.signature) if record.signature else None
        )
        for record in records
    ]


@router.post("/sort",
             response_model=SortResponse,
             responses=BAD_REQUEST,
             summary="Sort Images by Color",
             description="Analyze a batch of images and order them as a hue gradient")
async def sort_images(
    files: List[UploadFile] = File(..., description="Images to sort"),
    strategy: str = Query(config.DEFAULT_STRATEGY, pattern=STRATEGY_PATTERN, description="Analysis strategy"),
    template: Optional[str] = Query(None, description="Filename template, e.g. {index:04}_{basename}"),
    rename_neutral: bool = Query(config.RENAME_NEUTRAL, description="Apply the template to neutral images too"),
    seed: Optional[int] = Query(None, description="Random seed for the kmeans strategy"),
    include_swatch: bool = Query(True, description="Render a PNG strip of the sorted colors"),
) -> SortResponse:
    pipeline = _pipeline_config(strategy, template, rename_neutral, seed)
    result = await _run(files, pipeline)

    swatch = None
    signatures = [record.signature for record in result.ordered]
    if include_swatch and signatures:
        swatch = render_swatch_strip(signatures, chip_size=24)

    return SortResponse(
        strategy=strategy,
        template=pipeline.filename_template,
        records=_record_models(result.records),
        progress=ProgressModel.from_progress(result.progress),
        histogram=[HistogramBin(**entry) for entry in hue_distribution(result.records)],
        swatch_png_b64=swatch,
    )


@router.post("/reorder",
             response_model=ReorderResponse,
             responses=BAD_REQUEST,
             summary="Manual Reorder",
             description="Move one record and regenerate names as {index}_{basename}{ext}")
async def reorder_images(request: ReorderRequest) -> ReorderResponse:
    records = [item.to_record() for item in request.items]
    try:
        moved = reorder(records, request.from_index, request.to_index)
    except IndexError as e:
        raise HTTPException(status_code=400, detail=str(e))

    # Carry swatch colors through unchanged
    hex_by_id = {item.id: item.signature.hex for item in request.items if item.signature}
    return ReorderResponse(records=[
        RecordModel.from_record(record, hex_by_id.get(record.id)) for record in moved
    ])


@router.post("/export/zip",
             responses={**BAD_REQUEST, **EMPTY_BATCH},
             summary="Export ZIP",
             description="Sort a batch and download the renamed files as a ZIP archive")
async def export_zip(
    files: List[UploadFile] = File(..., description="Images to sort and archive"),
    strategy: str = Query(config.DEFAULT_STRATEGY, pattern=STRATEGY_PATTERN, description="Analysis strategy"),
    template: Optional[str] = Query(None, description="Filename template"),
    rename_neutral: bool = Query(config.RENAME_NEUTRAL, description="Apply the template to neutral images too"),
    seed: Optional[int] = Query(None, description="Random seed for the kmeans strategy"),
) -> Response:
    result = await _run(files, _pipeline_config(strategy, template, rename_neutral, seed))
    try:
        archive = build_zip(result.records)
    except EmptyBatch as e:
        raise HTTPException(status_code=422, detail=str(e))

    return Response(
        content=archive,
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{config.ZIP_FILENAME}"'}
    )


@router.post("/export/gif",
             responses={**BAD_REQUEST, **EMPTY_BATCH, **EXPORT_FAILED},
             summary="Export GIF",
             description="Sort a batch and download it as an animated GIF")
async def export_gif(
    files: List[UploadFile] = File(..., description="Images to sort and animate"),
    strategy: str = Query(config.DEFAULT_STRATEGY, pattern=STRATEGY_PATTERN, description="Analysis strategy"),
    frame_duration: int = Query(config.GIF_FRAME_MS, ge=20, le=10000, description="Milliseconds per frame"),
    max_edge: int = Query(config.GIF_MAX_EDGE, ge=16, le=4096, description="Longest frame edge in pixels"),
    seed: Optional[int] = Query(None, description="Random seed for the kmeans strategy"),
) -> Response:
    result = await _run(files, _pipeline_config(strategy, None, config.RENAME_NEUTRAL, seed))
    try:
        animation = build_animation(result.records, frame_duration_ms=frame_duration, max_edge=max_edge)
    except EmptyBatch as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ExportError as e:
        logger.error(f"GIF export failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return Response(
        content=animation,
        media_type="image/gif",
        headers={"Content-Disposition": f'attachment; filename="{config.GIF_FILENAME}"'}
    )


@router.get("/metrics", summary="Service Metrics")
async def metrics_summary() -> Dict[str, Any]:
    return get_metrics().get_summary()
