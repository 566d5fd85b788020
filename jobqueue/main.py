import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI

from jobqueue.api.routers import health, jobs
from jobqueue.config import settings
from jobqueue.logging_config import setup_logging
from jobqueue.services.publisher import JobPublisher

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    publisher = JobPublisher()
    await publisher.connect()
    app.state.publisher = publisher
    logger.info(
        "Job API started",
        extra={"exchange": publisher.exchange_name, "queues": settings.allowed_queues},
    )
    yield
    await publisher.disconnect()
    logger.info("Job API stopped")


app = FastAPI(title="Job Queue", lifespan=lifespan)

app.include_router(health.router)
app.include_router(jobs.router)
