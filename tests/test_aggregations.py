from datetime import timedelta

from backend.app import crud
from tests.conftest import AS_OF, make_event


class TestEventTypesDistribution:

    def test_counts_sum_to_total_and_sorted_by_count(self, db, add_events):
        add_events(
            make_event(user_id="u1", event_type="keyword_search"),
            make_event(user_id="u1", event_type="keyword_search"),
            make_event(user_id="u2", event_type="keyword_search"),
            make_event(user_id="u2", event_type="profile_explorer"),
            make_event(user_id="u3", event_type="create_topic_to_blog"),
            make_event(user_id="u3", event_type="create_topic_to_blog"),
        )

        rows = crud.get_event_types_distribution(db)

        assert [(row.name, row.value, row.unique_users) for row in rows] == [
            ("keyword_search", 3, 2),
            ("create_topic_to_blog", 2, 1),
            ("profile_explorer", 1, 1),
        ]
        assert sum(row.value for row in rows) == crud.count_events(db) == 6
        assert all(row.unique_users <= row.value for row in rows)

    def test_ties_are_ordered_by_name(self, db, add_events):
        add_events(
            make_event(event_type="profile_explorer"),
            make_event(event_type="keyword_search"),
            make_event(event_type="pin_explorer_by_url"),
        )

        rows = crud.get_event_types_distribution(db)

        assert [row.name for row in rows] == ["keyword_search", "pin_explorer_by_url", "profile_explorer"]

    def test_unexpected_event_type_is_grouped_as_is(self, db, add_events):
        add_events(
            make_event(event_type="legacy_export"),
            make_event(event_type="legacy_export"),
        )

        rows = crud.get_event_types_distribution(db)

        assert [(row.name, row.value) for row in rows] == [("legacy_export", 2)]


class TestEventsOverTime:

    def test_only_trailing_window_in_ascending_order(self, db, add_events):
        add_events(
            make_event(user_id="u1", timestamp=AS_OF - timedelta(days=1)),
            make_event(user_id="u2", timestamp=AS_OF - timedelta(days=1)),
            make_event(user_id="u1", timestamp=AS_OF - timedelta(days=1, hours=1)),
            make_event(user_id="u1", timestamp=AS_OF - timedelta(days=3)),
            make_event(user_id="u1", timestamp=AS_OF - timedelta(days=8)),
            make_event(user_id="u1", timestamp=AS_OF + timedelta(days=1)),
        )

        rows = crud.get_events_over_time(db, AS_OF, days=7)

        assert [(str(row.date), row.count, row.unique_users) for row in rows] == [
            ("2026-10-16", 1, 1),
            ("2026-10-18", 3, 2),
        ]

    def test_empty_window(self, db, add_events):
        add_events(make_event(timestamp=AS_OF - timedelta(days=30)))

        assert crud.get_events_over_time(db, AS_OF, days=7) == []


class TestUserActivityByHour:

    def test_hours_are_unique_and_ascending(self, db, add_events):
        day = AS_OF.replace(hour=0, minute=0)
        add_events(
            make_event(user_id="u1", timestamp=day.replace(hour=23)),
            make_event(user_id="u1", timestamp=day.replace(hour=9, minute=15)),
            make_event(user_id="u2", timestamp=day.replace(hour=9, minute=45)),
            make_event(user_id="u2", timestamp=day.replace(minute=30)),
        )

        rows = crud.get_user_activity_by_hour(db)

        assert [(int(row.hour), row.count, row.unique_users) for row in rows] == [
            (0, 1, 1),
            (9, 2, 2),
            (23, 1, 1),
        ]


class TestSubscriptionStatus:

    def test_average_days_in_trial(self, db, add_events):
        add_events(
            make_event(user_id="u1", subscription_status="trial", days_in_trial=3),
            make_event(user_id="u1", subscription_status="trial", days_in_trial=4),
            make_event(user_id="u2", subscription_status="trial", days_in_trial=4),
            make_event(user_id="u3", subscription_status="active"),
        )

        rows = {row.status: row for row in crud.get_subscription_status(db)}

        assert rows["trial"].count == 3
        assert rows["trial"].unique_users == 2
        assert round(rows["trial"].avg_days_in_trial, 1) == 3.7
        assert rows["active"].avg_days_in_trial is None


class TestPlatformEngagement:

    def test_distinct_browsers_and_devices(self, db, add_events):
        add_events(
            make_event(user_id="u1", metadata={"platform": "web", "browser": "Chrome", "device": "desktop"}),
            make_event(user_id="u1", metadata={"platform": "web", "browser": "Firefox", "device": "desktop"}),
            make_event(user_id="u2", metadata={"platform": "web", "browser": "Chrome", "device": "laptop"}),
            make_event(user_id="u3", metadata={"platform": "ios", "browser": "Safari"}),
        )

        rows = crud.get_platform_engagement(db)

        assert [(row.platform, row.count, row.unique_users, row.browser_count, row.device_count) for row in rows] == [
            ("web", 3, 2, 2, 2),
            ("ios", 1, 1, 1, 0),
        ]
        assert all(row.unique_users <= row.count for row in rows)

    def test_missing_platform_goes_to_unknown(self, db, add_events):
        add_events(
            make_event(metadata={"platform": "web"}),
            make_event(metadata=None),
            make_event(metadata={"browser": "Chrome"}),
        )

        rows = crud.get_platform_engagement(db)

        assert [(row.platform, row.count) for row in rows] == [("unknown", 2), ("web", 1)]

    def test_literal_unknown_merges_with_missing(self, db, add_events):
        add_events(
            make_event(metadata={"platform": "unknown"}),
            make_event(metadata=None),
            make_event(metadata={"platform": "android"}),
            make_event(metadata={"platform": "web"}),
        )

        rows = crud.get_platform_engagement(db)

        assert [(row.platform, row.count) for row in rows] == [("unknown", 2), ("android", 1), ("web", 1)]


class TestFeatureUsageBySubscription:

    def test_groups_by_event_and_subscription_type(self, db, add_events):
        add_events(
            make_event(user_id="u1", event_type="keyword_search", subscription_type="pro"),
            make_event(user_id="u2", event_type="keyword_search", subscription_type="pro"),
            make_event(user_id="u3", event_type="keyword_search", subscription_type="free"),
            make_event(user_id="u3", event_type="profile_explorer", subscription_type="free"),
        )

        rows = crud.get_feature_usage_by_subscription(db)

        assert [(row.event_type, row.subscription_type, row.count, row.unique_users) for row in rows] == [
            ("keyword_search", "pro", 2, 2),
            ("keyword_search", "free", 1, 1),
            ("profile_explorer", "free", 1, 1),
        ]


class TestEnvironmentEngagement:

    def test_counts_per_environment(self, db, add_events):
        add_events(
            make_event(user_id="u1", metadata={"environment": "production"}),
            make_event(user_id="u1", metadata={"environment": "production"}),
            make_event(user_id="u2", metadata={"environment": "production"}),
            make_event(user_id="u2", metadata={"environment": "staging"}),
        )

        rows = crud.get_environment_engagement(db)

        assert [(row.environment, row.count, row.unique_users) for row in rows] == [
            ("production", 3, 2),
            ("staging", 1, 1),
        ]

    def test_missing_and_literal_unknown_share_one_row(self, db, add_events):
        add_events(
            make_event(user_id="u1", metadata={"environment": "unknown"}),
            make_event(user_id="u2", metadata={"platform": "web"}),
            make_event(user_id="u3", metadata={"environment": "staging"}),
        )

        rows = crud.get_environment_engagement(db)

        assert [(row.environment, row.count, row.unique_users) for row in rows] == [
            ("unknown", 2, 2),
            ("staging", 1, 1),
        ]


class TestUserRetention:

    def test_averages_across_users(self, db, add_events):
        t0 = AS_OF - timedelta(days=5)
        add_events(
            make_event(user_id="U1", event_type="keyword_search", timestamp=t0),
            make_event(user_id="U1", event_type="profile_explorer", timestamp=t0 + timedelta(days=1)),
            make_event(user_id="U1", event_type="keyword_search", timestamp=t0 + timedelta(days=3)),
            make_event(user_id="U2", event_type="keyword_search", timestamp=t0),
        )

        retention = crud.calculate_user_retention(db)

        assert retention == {
            "avg_days_active": 1.5,
            "avg_events_per_user": 2.0,
            "avg_unique_event_types": 1.5,
            "total_users": 2
        }

    def test_partial_days_are_floored(self, db, add_events):
        add_events(
            make_event(user_id="u1", timestamp=AS_OF - timedelta(days=2, hours=20)),
            make_event(user_id="u1", timestamp=AS_OF),
        )

        assert crud.calculate_user_retention(db)["avg_days_active"] == 2.0

    def test_no_users(self, db):
        assert crud.calculate_user_retention(db) is None


class TestSnapshotWindow:

    def test_until_excludes_later_events(self, db, add_events):
        add_events(
            make_event(timestamp=AS_OF - timedelta(hours=1)),
            make_event(timestamp=AS_OF + timedelta(hours=1)),
        )

        assert crud.count_events(db) == 2
        assert crud.count_events(db, until=AS_OF) == 1
        assert [row.value for row in crud.get_event_types_distribution(db, until=AS_OF)] == [1]
