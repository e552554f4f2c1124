import asyncio
import json
import logging

from fastapi import APIRouter, HTTPException, Response

from contact_finder.dependencies import BatchSchedulerDep, JobStoreDep
from contact_finder.exceptions.custom import BatchProcessingError
from contact_finder.jobs import Job, JobStore
from contact_finder.schemas.contacts import BatchProgress, SiteResult
from contact_finder.schemas.responses import (
    JobStatusResponse,
    JobSubmittedResponse,
    ScrapeRequest,
    ScrapeResponse,
)
from contact_finder.services.batch import BatchScheduler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/scrape")

# Strong references so background batches are not garbage collected mid-run
_background_tasks: set[asyncio.Task] = set()


async def _run_batch(
    job_id: str,
    scheduler: BatchScheduler,
    store: JobStore,
    urls: list[str],
) -> None:
    def _publish(progress: BatchProgress, results: list[SiteResult]) -> None:
        store.update_progress(job_id, progress, results)

    store.mark_running(job_id)
    try:
        outcome = await scheduler.run(
            urls, on_progress=_publish, cancel=store.cancel_event(job_id),
        )
        store.mark_completed(
            job_id, outcome.progress, outcome.results, cancelled=outcome.cancelled,
        )
    except Exception as exc:
        logger.exception("Scrape job %s failed", job_id)
        store.mark_failed(job_id, str(exc))


def _get_job_or_404(store: JobStore, job_id: str) -> Job:
    job = store.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


@router.post("", response_model=ScrapeResponse)
async def scrape_sync(request: ScrapeRequest, scheduler: BatchSchedulerDep) -> ScrapeResponse:
    try:
        outcome = await scheduler.run(request.urls)
    except BatchProcessingError:
        raise
    except Exception as exc:
        logger.exception("Scrape batch failed")
        raise BatchProcessingError(str(exc)) from exc
    return ScrapeResponse(results=outcome.results)


@router.post("/jobs", response_model=JobSubmittedResponse, status_code=202)
async def submit_scrape_job(
    request: ScrapeRequest,
    scheduler: BatchSchedulerDep,
    store: JobStoreDep,
) -> JobSubmittedResponse:
    job = store.create_job(total=len(request.urls))
    task = asyncio.create_task(_run_batch(job.job_id, scheduler, store, request.urls))
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return JobSubmittedResponse(
        job_id=job.job_id,
        status=job.status,
        message=f"Scrape job submitted for {len(request.urls)} URLs",
    )


@router.get("/jobs/{job_id}", response_model=JobStatusResponse)
async def get_scrape_job(job_id: str, store: JobStoreDep) -> JobStatusResponse:
    job = _get_job_or_404(store, job_id)
    return JobStatusResponse(**job.model_dump())


@router.post("/jobs/{job_id}/cancel", response_model=JobSubmittedResponse)
async def cancel_scrape_job(job_id: str, store: JobStoreDep) -> JobSubmittedResponse:
    job = _get_job_or_404(store, job_id)
    if not store.request_cancel(job_id):
        raise HTTPException(status_code=409, detail=f"Job already {job.status}")
    return JobSubmittedResponse(
        job_id=job.job_id,
        status=job.status,
        message="Cancellation requested",
    )


@router.get("/jobs/{job_id}/download")
async def download_scrape_results(job_id: str, store: JobStoreDep) -> Response:
    job = _get_job_or_404(store, job_id)
    payload = [r.model_dump(mode="json", by_alias=True) for r in job.results]
    return Response(
        content=json.dumps(payload, indent=2),
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="contacts.json"'},
    )
