"""
HueSort Processing Supervisor
Runs sampling and extraction over a batch and hands the results to ordering.

Scheduling: every file's pipeline is launched at once and runs on a worker
thread, with at most ``max_concurrency`` in flight. Progress advances as each
pipeline finishes, in completion order. Ordering happens only after every
result is collected, so scheduling never changes the final order.
"""
import asyncio
import threading
import time
from contextlib import nullcontext
from typing import Callable, List, Optional, Sequence

from loguru import logger

from huesort.exceptions import HueSortError
from huesort.models import BatchResult, ImageRecord, ImageSource, PipelineConfig, Progress
from huesort.services.colors.extraction import extract
from huesort.services.imaging import sample
from huesort.services.ordering import order
from huesort.utils.ids import generate_batch_id, generate_preview_handle, record_id
from huesort.utils.logging import bind_batch
from huesort.utils.metrics import MetricsCollector, get_metrics

ProgressListener = Callable[[Progress], None]


class ProgressCounter:
    """Thread-safe (current, total) counter with fetch-and-increment semantics."""

    def __init__(self, total: int, listener: Optional[ProgressListener] = None):
        self._lock = threading.Lock()
        self._current = 0
        self._total = total
        self._listener = listener

    def increment(self) -> Progress:
        """Advance by one completed file and notify the listener."""
        with self._lock:
            self._current += 1
            progress = Progress(self._current, self._total)
            # Notified under the lock so listeners see a monotonic sequence
            if self._listener is not None:
                try:
                    self._listener(progress)
                except Exception:
                    logger.exception(f"Progress listener failed at {progress.current}/{progress.total}")
        return progress

    def snapshot(self) -> Progress:
        with self._lock:
            return Progress(self._current, self._total)


def create_record(source: ImageSource) -> ImageRecord:
    """New pipeline record owning the source bytes."""
    return ImageRecord(
        id=record_id(source.name, source.size, source.modified),
        original_name=source.name,
        data=source.data,
        size=source.size,
        modified=source.modified,
        preview=generate_preview_handle(),
    )


def analyze_image(record: ImageRecord, config: PipelineConfig,
                  metrics: Optional[MetricsCollector] = None) -> ImageRecord:
    """
    Sample and extract one record.

    Raises:
        DecodeError, UnsupportedContext: From the sampler
    """
    timed = metrics.timed if metrics is not None else (lambda stage: nullcontext())

    with timed("sample"):
        pixels = sample(record.data, config.max_dimension, config.alpha_threshold)
    with timed("extract"):
        signature = extract(pixels, config)
    return record.with_signature(signature)


class ProcessingSupervisor:
    """Orchestrates per-image extraction over a batch."""

    def __init__(self, config: Optional[PipelineConfig] = None,
                 metrics: Optional[MetricsCollector] = None):
        self.config = config or PipelineConfig()
        self.metrics = metrics or get_metrics()

    def _process_one(self, record: ImageRecord) -> ImageRecord:
        """Run one pipeline; failures become the record's error."""
        try:
            result = analyze_image(record, self.config, self.metrics)
        except HueSortError as e:
            logger.warning(f"Failed to analyze {record.original_name}: {e}")
            self.metrics.increment_failure_count(type(e).__name__)
            return record.with_error(str(e))
        except Exception as e:
            logger.exception(f"Unexpected error analyzing {record.original_name}")
            self.metrics.increment_failure_count(type(e).__name__)
            return record.with_error(str(e) or type(e).__name__)

        self.metrics.increment_processed_count()
        return result

    async def run(self, sources: Sequence[ImageSource],
                  on_progress: Optional[ProgressListener] = None,
                  cancel_event: Optional[asyncio.Event] = None) -> BatchResult:
        """
        Process a batch and return the ordered, named records.

        Args:
            sources: Input files in selection order
            on_progress: Called with the new Progress after each file completes
            cancel_event: When set, no further pipelines are started; records
                already completed are kept and ordered

        Returns:
            BatchResult with sorted records followed by failed ones
        """
        batch_id = generate_batch_id()
        start_time = time.time()
        records = [create_record(source) for source in sources]
        counter = ProgressCounter(len(records), on_progress)
        semaphore = asyncio.Semaphore(max(1, self.config.max_concurrency))
        results: List[Optional[ImageRecord]] = [None] * len(records)

        strategy_name = self.config.strategy.name.value
        batch_log = bind_batch(batch_id, strategy=strategy_name)
        self.metrics.increment_batch_count()
        self.metrics.increment_strategy_count(strategy_name)
        batch_log.info(f"Processing {len(records)} images with {strategy_name} strategy")

        async def _run_pipeline(index: int, record: ImageRecord) -> None:
            async with semaphore:
                if cancel_event is not None and cancel_event.is_set():
                    return
                results[index] = await asyncio.to_thread(self._process_one, record)
                counter.increment()

        await asyncio.gather(*(_run_pipeline(i, record) for i, record in enumerate(records)))

        completed = [record for record in results if record is not None]
        cancelled = len(completed) < len(records)
        ordered = order(completed, self.config.filename_template, self.config.rename_neutral)

        result = BatchResult(records=ordered, progress=counter.snapshot(), cancelled=cancelled)

        total_ms = (time.time() - start_time) * 1000
        self.metrics.record_timing("batch", total_ms)
        batch_log.info(
            f"Batch complete: {len(result.ordered)} sorted, {len(result.failed)} failed"
            f"{', cancelled' if cancelled else ''} in {total_ms:.0f}ms"
        )
        return result

    def run_sync(self, sources: Sequence[ImageSource],
                 on_progress: Optional[ProgressListener] = None) -> BatchResult:
        """Blocking wrapper around ``run`` for scripts and the CLI."""
        return asyncio.run(self.run(sources, on_progress=on_progress))


def run_batch(sources: Sequence[ImageSource], config: Optional[PipelineConfig] = None,
              on_progress: Optional[ProgressListener] = None) -> BatchResult:
    """Process a batch synchronously with a fresh supervisor."""
    return ProcessingSupervisor(config).run_sync(sources, on_progress=on_progress)
