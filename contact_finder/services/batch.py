import asyncio
import logging
from collections.abc import Callable
from typing import NamedTuple, Protocol

from pydantic import BaseModel

from contact_finder.exceptions.custom import BatchProcessingError
from contact_finder.schemas.contacts import BatchProgress, SiteResult

logger = logging.getLogger(__name__)

MAX_CONCURRENCY = 5

ProgressCallback = Callable[[BatchProgress, list[SiteResult]], None]


class SiteScraper(Protocol):
    async def scrape(self, url: str) -> SiteResult | None: ...


class BatchOutcome(BaseModel):
    results: list[SiteResult] = []  # completion order
    progress: BatchProgress
    cancelled: bool = False


class _Completion(NamedTuple):
    url: str
    result: SiteResult | None = None
    error: Exception | None = None
    skipped: bool = False


class BatchScheduler:
    """Runs one scrape per URL, at most ``max_concurrency`` at a time.

    Workers only report completions through a queue; the consumer loop in
    ``run`` is the single owner of the result list and progress counters,
    so every snapshot handed to ``on_progress`` is consistent.
    """

    def __init__(self, scraper: SiteScraper, max_concurrency: int = MAX_CONCURRENCY):
        self._scraper = scraper
        self._max_concurrency = max_concurrency

    async def run(
        self,
        urls: list[str],
        on_progress: ProgressCallback | None = None,
        cancel: asyncio.Event | None = None,
    ) -> BatchOutcome:
        progress = BatchProgress(total=len(urls))
        results: list[SiteResult] = []
        if not urls:
            return BatchOutcome(results=results, progress=progress)

        logger.info("Starting batch of %d URLs (concurrency=%d)", len(urls), self._max_concurrency)
        semaphore = asyncio.Semaphore(self._max_concurrency)
        completions: asyncio.Queue[_Completion] = asyncio.Queue()

        async def _worker(url: str) -> None:
            async with semaphore:
                if cancel is not None and cancel.is_set():
                    completions.put_nowait(_Completion(url, skipped=True))
                    return
                try:
                    result = await self._scraper.scrape(url)
                except Exception as exc:
                    completions.put_nowait(_Completion(url, error=exc))
                    return
                completions.put_nowait(_Completion(url, result=result))

        tasks = [asyncio.create_task(_worker(url)) for url in urls]
        skipped = 0
        try:
            for _ in range(len(tasks)):
                completion = await completions.get()
                if completion.skipped:
                    skipped += 1
                    continue
                if completion.error is not None:
                    logger.error(
                        "Scrape of %s failed unexpectedly",
                        completion.url, exc_info=completion.error,
                    )
                    raise BatchProcessingError(
                        str(completion.error) or type(completion.error).__name__,
                        url=completion.url,
                    ) from completion.error

                progress.processed += 1
                if completion.result is not None:
                    results.append(completion.result)
                    progress.fetched += 1
                if on_progress is not None:
                    on_progress(progress.model_copy(), list(results))
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        cancelled = skipped > 0
        if cancelled:
            logger.info("Batch cancelled: %d URLs skipped", skipped)
        logger.info(
            "Batch finished: %d/%d processed, %d with contacts",
            progress.processed, progress.total, progress.fetched,
        )
        return BatchOutcome(results=results, progress=progress, cancelled=cancelled)
