import asyncio
import logging
import threading
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app import crud, schemas
from shared.config import settings
from shared.database import EventStore

logger = logging.getLogger(__name__)

FAILURE_MESSAGE = "Failed to fetch analytics data"


class AggregationError(Exception):
    def __init__(self, details: str):
        super().__init__(f"{FAILURE_MESSAGE}: {details}")
        self.message = FAILURE_MESSAGE
        self.details = details


class AggregationCancelled(Exception):
    """Raised inside the worker thread once the caller has given up waiting."""


def _round(value) -> Optional[float]:
    return None if value is None else round(float(value), 1)


def build_summary(
    db: Session,
    as_of: datetime,
    snapshot: bool = False,
    cancelled: Optional[threading.Event] = None
) -> schemas.AnalyticsSummary:
    """
    Run the eight aggregations against one session and merge their rows.

    An empty store short-circuits to the all-zero payload without issuing
    any aggregation. With ``snapshot`` every aggregation only sees events
    up to ``as_of``. Once ``cancelled`` is set no further query is issued.
    """
    until = as_of if snapshot else None

    def checkpoint(step: str) -> None:
        if cancelled is not None and cancelled.is_set():
            raise AggregationCancelled(f"cancelled before {step}")

    total = crud.count_events(db, until)
    logger.info(f"Found {total} events in the store")
    if total == 0:
        return schemas.AnalyticsSummary()

    checkpoint("event types distribution")
    event_types = [
        schemas.EventTypeItem(name=row.name, value=row.value, unique_users=row.unique_users)
        for row in crud.get_event_types_distribution(db, until)
    ]
    checkpoint("events over time")
    events_over_time = [
        schemas.EventsOverTimeItem(date=str(row.date), count=row.count, unique_users=row.unique_users)
        for row in crud.get_events_over_time(db, as_of, settings.EVENTS_OVER_TIME_DAYS)
    ]
    checkpoint("activity by hour")
    activity_by_hour = [
        schemas.HourlyActivityItem(hour=int(row.hour), count=row.count, unique_users=row.unique_users)
        for row in crud.get_user_activity_by_hour(db, until)
    ]
    checkpoint("subscription status")
    subscription_status = [
        schemas.SubscriptionStatusItem(
            status=row.status,
            count=row.count,
            unique_users=row.unique_users,
            avg_days_in_trial=_round(row.avg_days_in_trial)
        )
        for row in crud.get_subscription_status(db, until)
    ]
    checkpoint("platform engagement")
    platform_engagement = [
        schemas.PlatformEngagementItem(
            platform=row.platform,
            count=row.count,
            unique_users=row.unique_users,
            browser_count=row.browser_count,
            device_count=row.device_count
        )
        for row in crud.get_platform_engagement(db, until)
    ]
    checkpoint("feature usage")
    feature_usage = [
        schemas.FeatureUsageItem(
            event_type=row.event_type,
            subscription_type=row.subscription_type,
            count=row.count,
            unique_users=row.unique_users
        )
        for row in crud.get_feature_usage_by_subscription(db, until)
    ]
    checkpoint("environment engagement")
    environment_engagement = [
        schemas.EnvironmentEngagementItem(
            environment=row.environment,
            count=row.count,
            unique_users=row.unique_users,
            avg_events_per_user=round(row.count / row.unique_users, 1) if row.unique_users else 0.0
        )
        for row in crud.get_environment_engagement(db, until)
    ]

    checkpoint("user retention")
    retention = crud.calculate_user_retention(db, until)
    user_retention = schemas.UserRetention(**retention) if retention else schemas.UserRetention()

    return schemas.AnalyticsSummary(
        event_types_distribution=event_types,
        events_over_time=events_over_time,
        user_activity_by_hour=activity_by_hour,
        subscription_status=subscription_status,
        platform_engagement=platform_engagement,
        feature_usage_by_subscription=feature_usage,
        environment_engagement=environment_engagement,
        user_retention=user_retention
    )


def _describe(exc: Exception, store: EventStore) -> str:
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        details = str(exc.orig)
    else:
        details = str(exc) or type(exc).__name__
    return details.replace(store.url, store.safe_url)


def _run(
    store: EventStore,
    as_of: datetime,
    snapshot: bool,
    cancelled: threading.Event
) -> Optional[schemas.AnalyticsSummary]:
    with store.session_scope() as db:
        try:
            return build_summary(db, as_of, snapshot, cancelled)
        except AggregationCancelled as e:
            # nobody is waiting for the result any more
            logger.warning(f"Summary aggregation stopped: {e}")
            return None


async def get_summary(
    store: EventStore,
    as_of: Optional[datetime] = None,
    timeout: Optional[float] = None,
    snapshot: Optional[bool] = None
) -> schemas.AnalyticsSummary:
    as_of = as_of or datetime.now(timezone.utc)
    timeout = settings.SUMMARY_TIMEOUT_SECONDS if timeout is None else timeout
    snapshot = settings.SUMMARY_SNAPSHOT if snapshot is None else snapshot
    cancelled = threading.Event()

    try:
        return await asyncio.wait_for(asyncio.to_thread(_run, store, as_of, snapshot, cancelled), timeout)
    except asyncio.TimeoutError:
        cancelled.set()
        logger.error(f"Summary aggregation exceeded {timeout}s deadline")
        raise AggregationError(f"Aggregation timed out after {timeout}s")
    except SQLAlchemyError as e:
        details = _describe(e, store)
        logger.exception(f"Summary aggregation failed: {details}")
        raise AggregationError(details) from e
