from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import extract, func, literal
from sqlalchemy.orm import Query, Session

from shared.config import settings
from shared.models import Event


def _until(query: Query, until: Optional[datetime]) -> Query:
    if until is None:
        return query
    return query.filter(Event.timestamp <= until)


def _metadata(key: str):
    return Event.metadata_[key].as_string()


def _metadata_bucket(key: str):
    # missing values share one group with events that literally carry the label
    return func.coalesce(_metadata(key), literal(settings.UNKNOWN_BUCKET, literal_execute=True))


def count_events(db: Session, until: Optional[datetime] = None) -> int:
    return _until(db.query(func.count(Event.event_id)), until).scalar() or 0


def get_event_types_distribution(db: Session, until: Optional[datetime] = None):
    results = _until(db.query(
        Event.event_type.label("name"),
        func.count(Event.event_id).label("value"),
        func.count(func.distinct(Event.user_id)).label("unique_users")
    ), until).group_by(
        Event.event_type
    ).order_by(
        func.count(Event.event_id).desc(),
        Event.event_type
    ).all()

    return results


def get_events_over_time(db: Session, as_of: datetime, days: int = 7):
    window_start = as_of - timedelta(days=days)

    results = db.query(
        func.date(Event.timestamp).label("date"),
        func.count(Event.event_id).label("count"),
        func.count(func.distinct(Event.user_id)).label("unique_users")
    ).filter(
        Event.timestamp >= window_start,
        Event.timestamp <= as_of
    ).group_by(
        func.date(Event.timestamp)
    ).order_by(
        func.date(Event.timestamp)
    ).all()

    return results


def get_user_activity_by_hour(db: Session, until: Optional[datetime] = None):
    hour = extract("hour", Event.timestamp)

    results = _until(db.query(
        hour.label("hour"),
        func.count(Event.event_id).label("count"),
        func.count(func.distinct(Event.user_id)).label("unique_users")
    ), until).filter(
        Event.timestamp.isnot(None)
    ).group_by(
        hour
    ).order_by(
        hour
    ).all()

    return results


def get_subscription_status(db: Session, until: Optional[datetime] = None):
    results = _until(db.query(
        Event.subscription_status.label("status"),
        func.count(Event.event_id).label("count"),
        func.count(func.distinct(Event.user_id)).label("unique_users"),
        func.avg(Event.days_in_trial).label("avg_days_in_trial")
    ), until).group_by(
        Event.subscription_status
    ).order_by(
        func.count(Event.event_id).desc(),
        Event.subscription_status
    ).all()

    return results


def get_platform_engagement(db: Session, until: Optional[datetime] = None):
    platform = _metadata_bucket("platform")

    results = _until(db.query(
        platform.label("platform"),
        func.count(Event.event_id).label("count"),
        func.count(func.distinct(Event.user_id)).label("unique_users"),
        func.count(func.distinct(_metadata("browser"))).label("browser_count"),
        func.count(func.distinct(_metadata("device"))).label("device_count")
    ), until).group_by(
        platform
    ).order_by(
        func.count(Event.event_id).desc(),
        platform
    ).all()

    return results


def get_feature_usage_by_subscription(db: Session, until: Optional[datetime] = None):
    results = _until(db.query(
        Event.event_type,
        Event.subscription_type,
        func.count(Event.event_id).label("count"),
        func.count(func.distinct(Event.user_id)).label("unique_users")
    ), until).group_by(
        Event.event_type,
        Event.subscription_type
    ).order_by(
        func.count(Event.event_id).desc(),
        Event.event_type,
        Event.subscription_type
    ).all()

    return results


def get_environment_engagement(db: Session, until: Optional[datetime] = None):
    environment = _metadata_bucket("environment")

    results = _until(db.query(
        environment.label("environment"),
        func.count(Event.event_id).label("count"),
        func.count(func.distinct(Event.user_id)).label("unique_users")
    ), until).group_by(
        environment
    ).order_by(
        func.count(Event.event_id).desc(),
        environment
    ).all()

    return results


def calculate_user_retention(db: Session, until: Optional[datetime] = None):
    per_user = _until(db.query(
        Event.user_id,
        func.min(Event.timestamp).label("first_event"),
        func.max(Event.timestamp).label("last_event"),
        func.count(Event.event_id).label("event_count"),
        func.count(func.distinct(Event.event_type)).label("unique_event_types")
    ), until).group_by(
        Event.user_id
    ).order_by(
        Event.user_id
    ).all()

    users_count = len(per_user)
    if users_count == 0:
        return None

    days_active = []
    for row in per_user:
        if row.first_event is None or row.last_event is None:
            days_active.append(0)
        else:
            days_active.append((row.last_event - row.first_event).days)

    return {
        "avg_days_active": round(sum(days_active) / users_count, 1),
        "avg_events_per_user": round(sum(row.event_count for row in per_user) / users_count, 1),
        "avg_unique_event_types": round(sum(row.unique_event_types for row in per_user) / users_count, 1),
        "total_users": users_count
    }
