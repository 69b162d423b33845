from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from app import create_app
from config import Settings
from store import StoreError

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeStore:
    """In-memory store keyed the same way as the contacts table."""

    def __init__(self, fail_upsert=False, fail_insert=False):
        self.fail_upsert = fail_upsert
        self.fail_insert = fail_insert
        self.calls = []
        self.contacts = {}
        self.communications = []

    async def upsert(self, table, row, *, on_conflict, returning="id"):
        self.calls.append(("upsert", table, dict(row)))
        if self.fail_upsert:
            raise StoreError("duplicate key value violates unique constraint")

        key = row[on_conflict]
        existing = self.contacts.get(key)
        contact_id = existing["id"] if existing else len(self.contacts) + 1
        self.contacts[key] = {**row, "id": contact_id}
        return contact_id

    async def insert(self, table, row):
        self.calls.append(("insert", table, dict(row)))
        if self.fail_insert:
            raise StoreError("insert or update violates foreign key constraint")
        self.communications.append(dict(row))


def make_settings(**overrides):
    values = {"database_url": "postgresql://localhost/test", "openphone_webhook_secret": None}
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def client(store):
    return TestClient(create_app(make_settings(), store=store))
