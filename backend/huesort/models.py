"""
HueSort Domain Models
Value types shared by the sampler, extractors, orderer and supervisor.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from huesort.config import Config

# Reserved hue meaning "classified neutral/gray, sort last"
NEUTRAL_HUE = 999.0


@dataclass(frozen=True)
class ColorSignature:
    """Representative hue/chroma/lightness of one image."""
    hue: float  # degrees in [0, 360), or NEUTRAL_HUE
    chroma: float  # 0-1, normalized
    lightness: float  # 0-1, normalized
    confidence: float  # 0-1, diagnostic only

    @property
    def is_neutral(self) -> bool:
        return self.hue == NEUTRAL_HUE

    @classmethod
    def neutral(cls, lightness: float, confidence: float) -> "ColorSignature":
        """Signature for an image with no chromatic evidence."""
        return cls(hue=NEUTRAL_HUE, chroma=0.0, lightness=lightness, confidence=confidence)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hue": self.hue,
            "chroma": self.chroma,
            "lightness": self.lightness,
            "confidence": self.confidence,
            "neutral": self.is_neutral,
        }


@dataclass(frozen=True)
class ImageSource:
    """A file as handed over by the file-selection surface."""
    data: bytes
    name: str
    size: int
    modified: float  # modification time, epoch milliseconds


def split_name(name: str) -> Tuple[str, str]:
    """
    Split a file name into (stem, extension) at its final dot.

    A leading dot is part of the stem, so ``.hidden`` has no extension.
    """
    dot = name.rfind(".")
    if dot <= 0:
        return name, ""
    return name[:dot], name[dot:]


@dataclass(frozen=True)
class ImageRecord:
    """
    One image moving through the pipeline.

    Records are never mutated in place; every stage returns a replacement
    built with ``dataclasses.replace``.
    """
    id: str
    original_name: str
    data: bytes = field(repr=False)
    size: int = 0
    modified: float = 0.0
    preview: Optional[str] = None
    signature: Optional[ColorSignature] = None
    assigned_name: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None or self.signature is None

    def with_signature(self, signature: ColorSignature) -> "ImageRecord":
        return replace(self, signature=signature, error=None)

    def with_error(self, message: str) -> "ImageRecord":
        return replace(self, signature=None, error=message)

    def with_name(self, assigned_name: Optional[str]) -> "ImageRecord":
        return replace(self, assigned_name=assigned_name)


@dataclass(frozen=True)
class Progress:
    """Batch-level progress as observed by UI collaborators."""
    current: int
    total: int

    @property
    def fraction(self) -> float:
        return self.current / self.total if self.total else 1.0


@dataclass
class BatchResult:
    """Ordered records of a finished (or cancelled) batch run."""
    records: List[ImageRecord]
    progress: Progress
    cancelled: bool = False

    @property
    def ordered(self) -> List[ImageRecord]:
        return [record for record in self.records if not record.is_error]

    @property
    def failed(self) -> List[ImageRecord]:
        return [record for record in self.records if record.is_error]

    @property
    def valid_for_export(self) -> List[ImageRecord]:
        return [record for record in self.ordered if record.assigned_name]


# ============================================================================
# ANALYSIS STRATEGIES
# ============================================================================

class StrategyName(str, Enum):
    """Selectable dominant-color strategies."""
    HISTOGRAM = "histogram"    # Chroma-weighted hue histogram
    PERCEPTUAL = "perceptual"  # Center/lightness/chroma weighted histogram
    KMEANS = "kmeans"          # Lloyd clustering in RGB space


@dataclass(frozen=True)
class HistogramMath:
    """Baseline hue histogram scored by count x mean chroma."""
    min_chroma: float = 8.0
    bin_count: int = 18

    name = StrategyName.HISTOGRAM


@dataclass(frozen=True)
class PerceptualWeighted:
    """Weighted hue histogram tolerant of noisy backgrounds and small accents."""
    neutral_low: float = 7.0  # chroma where the neutrality ramp starts
    neutral_high: float = 15.0  # chroma where the ramp reaches 1
    neutral_mask_floor: float = 0.1
    neutral_ratio: float = 0.8
    center_sigma_sq: float = 0.5
    pop_share: float = 0.12
    pop_chroma: float = 28.0
    bin_count: int = 18
    smoothing: Tuple[float, float, float] = (0.25, 0.5, 0.25)

    name = StrategyName.PERCEPTUAL


@dataclass(frozen=True)
class ClusterKMeans:
    """
    k-means over chromatic pixels in RGB space.

    Centroids are seeded by uniform random sampling, so results only repeat
    run-to-run when ``seed`` is fixed.
    """
    k: int = 5
    iterations: int = 10
    min_chroma: float = 8.0
    color_space: Literal["lch", "hsv"] = "lch"
    seed: Optional[int] = None

    name = StrategyName.KMEANS


AnalysisStrategy = Union[HistogramMath, PerceptualWeighted, ClusterKMeans]


def strategy_from_name(name: Union[str, StrategyName], seed: Optional[int] = None) -> AnalysisStrategy:
    """Build a strategy with its documented defaults from a configuration name."""
    strategy = StrategyName(name)
    if strategy == StrategyName.HISTOGRAM:
        return HistogramMath()
    if strategy == StrategyName.PERCEPTUAL:
        return PerceptualWeighted()
    return ClusterKMeans(seed=seed)


@dataclass(frozen=True)
class PipelineConfig:
    """Everything that shapes a batch run, passed explicitly through the pipeline."""
    strategy: AnalysisStrategy = field(default_factory=HistogramMath)
    filename_template: str = "{index}_{basename}"
    max_dimension: int = 200
    alpha_threshold: int = 128
    rename_neutral: bool = False
    max_concurrency: int = 8

    @classmethod
    def from_settings(cls, settings: Config) -> "PipelineConfig":
        """Build the default pipeline configuration from environment settings."""
        return cls(
            strategy=strategy_from_name(settings.DEFAULT_STRATEGY, seed=settings.KMEANS_SEED),
            filename_template=settings.DEFAULT_TEMPLATE,
            max_dimension=settings.MAX_DIMENSION,
            alpha_threshold=settings.ALPHA_THRESHOLD,
            rename_neutral=settings.RENAME_NEUTRAL,
            max_concurrency=settings.MAX_CONCURRENCY,
        )

    def with_strategy(self, name: Union[str, StrategyName], seed: Optional[int] = None) -> "PipelineConfig":
        return replace(self, strategy=strategy_from_name(name, seed=seed))
