"""
Celery workers module.

Async CV processing. Run a single solo-pool worker with the beat scheduler:

    celery -A cv_intake.workers worker -B --pool=solo --concurrency=1

Dependencies: celery, python-dotenv, cv_intake.configs
System role: Background task processing
"""

from celery import Celery
from celery.signals import setup_logging
from dotenv import load_dotenv

# Load environment variables from .env if present
load_dotenv()

from cv_intake.configs import get_settings  # noqa: E402
from cv_intake.observability.logger import configure_logging  # noqa: E402

settings = get_settings()
celery_config = settings.celery

PROCESS_CV_TASK = "cv_intake.process_cv"
PURGE_RECORDS_TASK = "cv_intake.purge_job_records"

celery_app = Celery(
    "cv_intake",
    broker=celery_config.broker_url,
    backend=celery_config.result_backend_url,
    include=["cv_intake.workers.tasks.cv_processing"],
)

celery_app.conf.update(
    task_serializer=celery_config.task_serializer,
    result_serializer=celery_config.result_serializer,
    accept_content=celery_config.accept_content,
    timezone=celery_config.timezone,
    task_default_queue=celery_config.queue_name,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    result_extended=True,
    # One job at a time, system-wide
    worker_pool="solo",
    worker_concurrency=1,
    worker_prefetch_multiplier=1,
    beat_schedule={
        "purge-job-records": {
            "task": PURGE_RECORDS_TASK,
            "schedule": celery_config.cleanup_interval_seconds,
        },
    },
)


@setup_logging.connect
def _configure_worker_logging(**kwargs) -> None:
    configure_logging(settings.effective_log_level)
