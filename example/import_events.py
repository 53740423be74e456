import json
import logging
from datetime import datetime, timezone
from typing import Optional

from shared.database import EventStore, event_store
from shared.models import METADATA_FIELDS, Event

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


def _known_metadata(metadata: Optional[dict]) -> Optional[dict]:
    if metadata is None:
        return None
    return {key: value for key, value in metadata.items() if key in METADATA_FIELDS}


def event_from_document(doc: dict) -> Event:
    timestamp = doc.get("timestamp")
    if isinstance(timestamp, str):
        timestamp = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    if timestamp is not None and timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(timezone.utc)

    event = Event(
        event_id=doc["eventId"],
        event_type=doc["eventType"],
        user_id=doc["userId"],
        subscription_type=doc["subscriptionType"],
        subscription_status=doc["subscriptionStatus"],
        days_in_trial=doc.get("daysInTrial"),
        properties=doc.get("properties") or {},
        metadata_=_known_metadata(doc.get("metadata"))
    )
    # a missing timestamp falls back to the column default (write time)
    if timestamp is not None:
        event.timestamp = timestamp
    return event


def import_json(json_path: str, store: Optional[EventStore] = None) -> int:
    store = store or event_store
    store.create_schema()

    with open(json_path, encoding="utf-8") as fh:
        documents = json.load(fh)["events"]

    with store.session_scope() as session:
        for doc in documents:
            session.add(event_from_document(doc))
        session.commit()

    logger.info(f"Imported {len(documents)} events into {store.safe_url}")
    return len(documents)


if __name__ == "__main__":
    import sys
    import_json(sys.argv[1])
