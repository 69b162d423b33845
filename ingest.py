"""
Mirror OpenPhone call/message events into the contacts and communications
tables.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from errors import (
    CommunicationPersistenceError,
    ContactPersistenceError,
    MissingPhoneNumber,
)
from logging_setup import get_logger
from store import Store, StoreError

logger = get_logger(__name__)

CONTACTS_TABLE = "contacts"
COMMUNICATIONS_TABLE = "communications"

CALL = "call"
MESSAGE = "message"


@dataclass(frozen=True)
class IngestResult:
    contact_id: Any
    communication_type: str


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        parsed = datetime.fromisoformat(value)
    else:
        raise ValueError(f"unsupported timestamp: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_duration(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"duration is not a whole number of seconds: {value!r}")
        return int(value)
    if isinstance(value, int):
        return value
    return int(str(value))


def communication_type(event_type: Any) -> str:
    # anything that isn't a call is stored as a message
    return CALL if event_type == CALL else MESSAGE


class WebhookIngestor:
    """
    Upsert the contact for an event's phone number, then record the event as a
    communication of that contact.

    The two writes are not transactional: if the insert fails the contact
    update is kept and the caller gets an error so the provider can redeliver.
    """

    def __init__(self, store: Store, clock: Callable[[], datetime] = _utcnow):
        self.store = store
        self.clock = clock

    async def process(self, event_type: Any, event_data: Any) -> IngestResult:
        if not isinstance(event_data, Mapping) or not event_data.get("phoneNumber"):
            raise MissingPhoneNumber()

        phone_number = event_data["phoneNumber"]
        contact_name = event_data.get("name") or event_data.get("contactName") or None
        message_text = event_data.get("text") or event_data.get("message") or None
        duration = event_data.get("duration") or None
        timestamp = event_data.get("createdAt") or event_data.get("timestamp") or self.clock()
        kind = communication_type(event_type)

        try:
            contact_id = await self.store.upsert(
                CONTACTS_TABLE,
                {
                    "phone_number": phone_number,
                    "name": contact_name,
                    "updated_at": self.clock(),
                },
                on_conflict="phone_number",
                returning="id",
            )
        except StoreError as exc:
            logger.error(
                "Error upserting contact",
                extra={"operation": "upsert_contact", "error": str(exc)},
            )
            raise ContactPersistenceError() from exc

        try:
            row = {
                "contact_id": contact_id,
                "type": kind,
                "content": message_text,
                "duration": _parse_duration(duration),
                "timestamp": _parse_timestamp(timestamp),
                "created_at": self.clock(),
            }
            await self.store.insert(COMMUNICATIONS_TABLE, row)
        except (StoreError, ValueError, OverflowError) as exc:
            logger.error(
                "Error inserting communication",
                extra={"operation": "insert_communication", "error": str(exc)},
            )
            raise CommunicationPersistenceError() from exc

        logger.info(
            f"Successfully processed {kind} for contact: {phone_number}",
            extra={"communication_type": kind, "phone_number": phone_number},
        )
        return IngestResult(contact_id=contact_id, communication_type=kind)
