from celery import Celery

from loggers import get_logger
from src.main.config import config
from src.main.sentry import init_sentry

init_sentry()
logger = get_logger(__name__)

# RabbitMQ carries the messages, Redis keeps the results
celery_app = Celery(__name__, broker=config.rabbitmq.dsn, backend=config.redis.celery_dsn)

celery_app.conf.broker_connection_retry_on_startup = True
celery_app.conf.update(
    task_create_missing_queues=True,
    task_acks_late=True,
    task_track_started=True,
    task_time_limit=300,
    task_always_eager=False,
    include=["src.core.email_service.tasks"],
    timezone="UTC",
    enable_utc=True,
)
