"""Celery wiring for scheduled eviction of durable pending authorizations."""

from __future__ import annotations

from celery import Celery  # type: ignore[import-untyped]

from oauthflow.config import FlowSettings, get_settings
from oauthflow.db.session import create_flow_engine, create_session_maker
from oauthflow.stores.sql import SqlPendingAuthorizationStore

EVICT_EXPIRED_AUTHORIZATIONS_TASK_NAME = "oauthflow.evict_expired_authorizations"
celery_app = Celery("oauthflow")


def configure_celery(settings: FlowSettings) -> None:
    celery_app.conf.broker_url = settings.celery_broker_url
    celery_app.conf.result_backend = None
    celery_app.conf.task_ignore_result = True
    celery_app.conf.task_serializer = "json"
    celery_app.conf.accept_content = ["json"]
    celery_app.conf.beat_schedule = {
        "evict-expired-authorizations": {
            "task": EVICT_EXPIRED_AUTHORIZATIONS_TASK_NAME,
            "schedule": float(settings.eviction_interval_seconds),
        }
    }


def evict_expired_authorizations(settings: FlowSettings) -> int:
    engine = create_flow_engine(settings.database_url)
    try:
        store = SqlPendingAuthorizationStore(
            create_session_maker(engine),
            ttl_seconds=settings.store_ttl_seconds,
        )
        return store.evict_expired()
    finally:
        engine.dispose()


@celery_app.task(name=EVICT_EXPIRED_AUTHORIZATIONS_TASK_NAME)  # type: ignore[misc]
def evict_expired_authorizations_task() -> int:
    settings = get_settings()
    configure_celery(settings)
    return evict_expired_authorizations(settings)


def enqueue_eviction(*, settings: FlowSettings) -> None:
    configure_celery(settings)
    evict_expired_authorizations_task.delay()
