import json
import random
import sys
import uuid
from datetime import datetime, timedelta, timezone

from shared.models import EVENT_TYPES

SUBSCRIPTIONS = {
    "free": ["active"],
    "trial": ["trial", "expired"],
    "pro": ["active", "cancelled", "past_due"],
}
PLATFORMS = {
    "web": (["Chrome", "Firefox", "Safari", "Edge"], ["desktop", "laptop"]),
    "ios": (["Safari"], ["iphone", "ipad"]),
    "android": (["Chrome", "Samsung Internet"], ["phone", "tablet"]),
}
ENVIRONMENTS = ["production", "production", "production", "staging"]

PROPERTIES = {
    "keyword_search": lambda: {"keyword": random.choice(["recipes", "wedding", "home decor"]), "resultsCount": random.randint(0, 200)},
    "pin_explorer_by_keyword": lambda: {"keyword": random.choice(["travel", "fitness"]), "pinsFound": random.randint(0, 50)},
    "pin_explorer_by_url": lambda: {"url": "https://www.pinterest.com/pin/" + str(random.randint(10**8, 10**9))},
    "profile_explorer": lambda: {"profile": random.choice(["designinspo", "foodie", "diyhub"])},
    "create_images_to_blog": lambda: {"imagesCount": random.randint(1, 10)},
    "create_topic_to_blog": lambda: {"topic": random.choice(["summer outfits", "meal prep"]), "wordCount": random.randint(300, 2000)},
    "create_title_description": lambda: {"titles": random.randint(1, 5)},
}


def generate_event(user_id: str, subscription_type: str, base_time: datetime) -> dict:
    event_type = random.choice(EVENT_TYPES)
    platform = random.choice(list(PLATFORMS))
    browsers, devices = PLATFORMS[platform]
    event = {
        "eventId": str(uuid.uuid4()),
        "eventType": event_type,
        "timestamp": (base_time - timedelta(seconds=random.randint(0, 3600 * 24 * 30))).isoformat(),
        "userId": user_id,
        "subscriptionType": subscription_type,
        "subscriptionStatus": random.choice(SUBSCRIPTIONS[subscription_type]),
        "properties": PROPERTIES[event_type](),
        "metadata": {
            "appVersion": "1.4." + str(random.randint(0, 9)),
            "environment": random.choice(ENVIRONMENTS),
            "platform": platform,
            "browser": random.choice(browsers),
            "device": random.choice(devices),
            "locale": random.choice(["en-US", "en-GB", "de-DE"]),
            "timezone": "UTC",
        },
    }
    if subscription_type == "trial":
        event["daysInTrial"] = random.randint(0, 14)
    return event


def generate_events(num_events: int, num_users: int = 100):
    base_time = datetime.now(timezone.utc)
    users = {f"user_{n}": random.choice(list(SUBSCRIPTIONS)) for n in range(num_users)}

    events = []
    for _ in range(num_events):
        user_id = random.choice(list(users))
        events.append(generate_event(user_id, users[user_id], base_time))
    return {"events": events}


def main():
    num_events = int(sys.argv[1]) if len(sys.argv) > 1 else 5000
    out_path = sys.argv[2] if len(sys.argv) > 2 else "events.json"
    data = generate_events(num_events)
    with open(out_path, "w") as f:
        json.dump(data, f, indent=2)


if __name__ == "__main__":
    main()
