import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from jobqueue.api.dependencies import get_publisher, resolve_queue_name, verify_api_secret
from jobqueue.models.job import Job
from jobqueue.services.publisher import JobPublisher

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(verify_api_secret)])


class EnqueueRequest(BaseModel):
    data: Any = None
    retries: int = Field(default=0, ge=0)


@router.post("/jobs/{queue_name}", status_code=202)
async def enqueue_job(
    body: EnqueueRequest,
    queue_name: str = Depends(resolve_queue_name),
    publisher: JobPublisher = Depends(get_publisher),
) -> JSONResponse:
    job = Job(queue_name=queue_name, data=body.data, retries=body.retries)

    try:
        await publisher.publish(job)
    except Exception as exc:
        logger.error(
            "Failed to publish job",
            extra={"job_id": str(job.id), "queue": queue_name, "error": str(exc)},
        )
        raise HTTPException(status_code=503, detail="Failed to publish job")

    logger.info("Job enqueued", extra={"job_id": str(job.id), "queue": queue_name})
    return JSONResponse(
        status_code=202,
        content={
            "job_id": str(job.id),
            "queue_name": job.queue_name,
            "state": job.state.value,
        },
    )
