import hmac

from fastapi import Header, HTTPException, Request

from jobqueue.config import settings
from jobqueue.services.publisher import JobPublisher


async def verify_api_secret(
    x_api_secret: str = Header(...),
) -> None:
    if not hmac.compare_digest(x_api_secret, settings.api_secret):
        raise HTTPException(status_code=401, detail="Invalid API secret")


async def resolve_queue_name(queue_name: str) -> str:
    if settings.allowed_queues and queue_name not in settings.allowed_queues:
        raise HTTPException(status_code=404, detail=f"Unknown queue: {queue_name}")
    return queue_name


async def get_publisher(request: Request) -> JobPublisher:
    publisher = request.app.state.publisher
    if not publisher.is_connected:
        raise HTTPException(status_code=503, detail="Job broker unavailable")
    return publisher
