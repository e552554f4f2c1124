from typing import Annotated

from fastapi import Depends, Request

from contact_finder.jobs import JobStore
from contact_finder.services.batch import BatchScheduler


def get_batch_scheduler(request: Request) -> BatchScheduler:
    return request.app.state.batch_scheduler


def get_job_store(request: Request) -> JobStore:
    return request.app.state.job_store


BatchSchedulerDep = Annotated[BatchScheduler, Depends(get_batch_scheduler)]
JobStoreDep = Annotated[JobStore, Depends(get_job_store)]
