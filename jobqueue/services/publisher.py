import logging

import aio_pika
from aio_pika import DeliveryMode, ExchangeType, Message

from jobqueue.config import settings
from jobqueue.models.job import Job

logger = logging.getLogger(__name__)

ROUTING_PREFIX = "job"


def routing_key_for(queue_name: str) -> str:
    return f"{ROUTING_PREFIX}.{queue_name}"


class JobPublisher:
    def __init__(self, url: str | None = None, exchange_name: str | None = None) -> None:
        self._url = url or settings.rabbitmq_url
        self._exchange_name = exchange_name or settings.exchange_name
        self._connection: aio_pika.abc.AbstractRobustConnection | None = None
        self._channel: aio_pika.abc.AbstractChannel | None = None
        self._exchange: aio_pika.abc.AbstractExchange | None = None

    async def connect(self) -> None:
        self._connection = await aio_pika.connect_robust(self._url)
        self._channel = await self._connection.channel()
        self._exchange = await self._channel.declare_exchange(
            self._exchange_name, ExchangeType.TOPIC, durable=True
        )
        logger.info("Connected to RabbitMQ", extra={"exchange": self._exchange_name})

    async def disconnect(self) -> None:
        if self._connection and not self._connection.is_closed:
            await self._connection.close()
            logger.info("Disconnected from RabbitMQ")

    async def publish(self, job: Job) -> None:
        if self._exchange is None:
            raise RuntimeError("Publisher not connected")
        routing_key = routing_key_for(job.queue_name)
        message = Message(
            job.model_dump_json().encode(),
            delivery_mode=DeliveryMode.PERSISTENT,
            content_type="application/json",
            message_id=str(job.id),
        )
        await self._exchange.publish(message, routing_key=routing_key)
        logger.info(
            "Published job",
            extra={"job_id": str(job.id), "routing_key": routing_key},
        )

    @property
    def exchange_name(self) -> str:
        return self._exchange_name

    @property
    def is_connected(self) -> bool:
        return self._connection is not None and not self._connection.is_closed
