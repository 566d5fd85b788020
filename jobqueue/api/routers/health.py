from fastapi import APIRouter, Request

from jobqueue.config import settings

router = APIRouter()


@router.get("/health")
async def health(request: Request) -> dict:
    publisher = request.app.state.publisher
    return {
        "status": "ok",
        "rabbitmq": "ok" if publisher.is_connected else "degraded",
        "exchange": publisher.exchange_name,
        "queues": settings.allowed_queues,
    }
