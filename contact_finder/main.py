import logging
import sys
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from contact_finder.config import Settings
from contact_finder.exceptions.custom import BatchProcessingError
from contact_finder.exceptions.handlers import (
    batch_processing_error_handler,
    request_validation_error_handler,
)
from contact_finder.jobs import JobStore
from contact_finder.routers.scrape import router as scrape_router
from contact_finder.services.batch import BatchScheduler
from contact_finder.services.contact_scraper import ContactScraperService


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = Settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)

    async with httpx.AsyncClient() as client:
        scraper = ContactScraperService(client, user_agent=settings.user_agent)
        app.state.batch_scheduler = BatchScheduler(scraper)
        app.state.job_store = JobStore(max_jobs=settings.max_jobs)

        yield


app = FastAPI(title="Contact Finder", lifespan=lifespan)

app.add_exception_handler(RequestValidationError, request_validation_error_handler)
app.add_exception_handler(BatchProcessingError, batch_processing_error_handler)

app.include_router(scrape_router)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
