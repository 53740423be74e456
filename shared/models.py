from datetime import datetime, timezone

from sqlalchemy import Column, String, JSON, DateTime, Float, Index
from shared.database import Base

EVENT_TYPES = (
    "keyword_search",
    "pin_explorer_by_keyword",
    "pin_explorer_by_url",
    "profile_explorer",
    "create_images_to_blog",
    "create_topic_to_blog",
    "create_title_description",
)

METADATA_FIELDS = (
    "appVersion",
    "environment",
    "ipAddress",
    "platform",
    "browser",
    "browserVersion",
    "device",
    "os",
    "userAgent",
    "referer",
    "page",
    "locale",
    "timezone",
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Event(Base):
    __tablename__ = "userevents"

    event_id = Column(String(64), primary_key=True)
    event_type = Column(String(100), nullable=False, index=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    user_id = Column(String(100), nullable=False, index=True)
    subscription_type = Column(String(100), nullable=False)
    subscription_status = Column(String(100), nullable=False)
    days_in_trial = Column(Float, nullable=True)
    properties = Column(JSON, nullable=False, default=dict)
    # "metadata" is reserved on declarative classes
    metadata_ = Column("metadata", JSON, nullable=True)

    __table_args__ = (
        Index("ix_userevents_event_type_timestamp", "event_type", "timestamp"),
        Index("ix_userevents_user_id_event_type", "user_id", "event_type"),
    )
