from __future__ import annotations

import json
import random
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
import requests

from app.db.base import create_all
from app.db.session import make_engine, make_session_factory
from app.services.sync.dispatcher import RecordChangeDispatcher, register_contact_hooks
from app.services.sync.jobs import run_inbound_sync, run_outbound_sync


class FakeResponse:
    def __init__(self, status_code: int, payload: Any = None, text: Optional[str] = None) -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    def json(self) -> Any:
        return json.loads(self.text)


class FakeDirectory:
    """Stands in for DirectoryClient; records every call."""

    def __init__(self) -> None:
        self.users: Dict[str, FakeResponse] = {}
        self.add_response = FakeResponse(201, {"id": 209})
        self.get_calls: List[str] = []
        self.add_calls: List[dict] = []
        self.raise_on_get: Optional[Exception] = None

    def get_user(self, external_id: str) -> FakeResponse:
        self.get_calls.append(external_id)
        if self.raise_on_get is not None:
            raise self.raise_on_get
        return self.users.get(external_id, FakeResponse(404, {"message": "not found"}))

    def add_user(self, payload: dict) -> FakeResponse:
        self.add_calls.append(payload)
        return self.add_response

    def close(self) -> None:
        pass


class RecordingQueue:
    """Collects enqueued jobs instead of scheduling them."""

    def __init__(self) -> None:
        self.inbound: List[str] = []
        self.outbound: List[str] = []

    def enqueue_inbound(self, external_id: str) -> None:
        self.inbound.append(external_id)

    def enqueue_outbound(self, contact_id: str) -> None:
        self.outbound.append(contact_id)

    def clear(self) -> None:
        self.inbound.clear()
        self.outbound.clear()

    def drain(self, session_factory, client, max_rounds: int = 5) -> list:
        """Run queued jobs (and whatever they queue) until nothing is left."""
        results = []
        for _ in range(max_rounds):
            if not (self.inbound or self.outbound):
                break
            inbound, outbound = list(self.inbound), list(self.outbound)
            self.clear()
            for external_id in inbound:
                results.append(run_inbound_sync(external_id, session_factory=session_factory, client=client))
            for contact_id in outbound:
                results.append(run_outbound_sync(contact_id, session_factory=session_factory, client=client))
        return results


@pytest.fixture()
def session_factory(tmp_path: Path):
    engine = make_engine(f"sqlite:///{tmp_path / 'contacts.sqlite3'}")
    create_all(engine)
    factory = make_session_factory(engine)
    yield factory
    engine.dispose()


@pytest.fixture()
def queue() -> RecordingQueue:
    return RecordingQueue()


@pytest.fixture()
def dispatcher(queue: RecordingQueue) -> RecordChangeDispatcher:
    return RecordChangeDispatcher(queue, rng=random.Random(7))


@pytest.fixture()
def hooked_factory(session_factory, dispatcher):
    register_contact_hooks(session_factory, dispatcher)
    return session_factory


@pytest.fixture()
def directory() -> FakeDirectory:
    return FakeDirectory()


@pytest.fixture()
def remote_user_42() -> dict:
    return {
        "id": 42,
        "firstName": "Ignored",
        "email": "a@b.com",
        "phone": "555",
        "birthDate": "1990-01-01",
        "address": {
            "address": "1 Main",
            "city": "X",
            "postalCode": 12345,
            "state": "CA",
            "country": "US",
        },
    }


@pytest.fixture()
def transport_error() -> Exception:
    return requests.exceptions.ConnectionError("directory unreachable")
