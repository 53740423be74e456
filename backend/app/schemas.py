from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class EventTypeItem(CamelModel):
    name: str
    value: int
    unique_users: int


class EventsOverTimeItem(CamelModel):
    date: str
    count: int
    unique_users: int


class HourlyActivityItem(CamelModel):
    hour: int
    count: int
    unique_users: int


class SubscriptionStatusItem(CamelModel):
    status: str
    count: int
    unique_users: int
    avg_days_in_trial: Optional[float] = None


class PlatformEngagementItem(CamelModel):
    platform: str
    count: int
    unique_users: int
    browser_count: int
    device_count: int


class FeatureUsageItem(CamelModel):
    event_type: str
    subscription_type: str
    count: int
    unique_users: int


class EnvironmentEngagementItem(CamelModel):
    environment: str
    count: int
    unique_users: int
    avg_events_per_user: float


class UserRetention(CamelModel):
    avg_days_active: float = 0.0
    avg_events_per_user: float = 0.0
    avg_unique_event_types: float = 0.0
    total_users: int = 0


class AnalyticsSummary(CamelModel):
    event_types_distribution: List[EventTypeItem] = []
    events_over_time: List[EventsOverTimeItem] = []
    user_activity_by_hour: List[HourlyActivityItem] = []
    subscription_status: List[SubscriptionStatusItem] = []
    platform_engagement: List[PlatformEngagementItem] = []
    feature_usage_by_subscription: List[FeatureUsageItem] = []
    environment_engagement: List[EnvironmentEngagementItem] = []
    user_retention: UserRetention = Field(default_factory=UserRetention)


class ErrorResponse(BaseModel):
    error: str
    details: str
