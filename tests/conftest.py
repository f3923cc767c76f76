from __future__ import annotations

"""Pytest fixtures shared by the model, codec and collector tests.

The collector app runs in-process (Starlette ``TestClient`` or
``httpx.ASGITransport``) so nothing touches the network.
"""

import os
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest
from fastapi import FastAPI
from starlette.testclient import TestClient

# ---------------------------------------------------------------------------
# Runtime env for the library
# ---------------------------------------------------------------------------

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("TRACKWIRE_API_HOST", "http://collector.test")

# Ensure project root on PYTHONPATH so `import trackwire` works when pytest is run
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from trackwire.main import create_app  # noqa: E402
from trackwire.models import (  # noqa: E402
    Alias,
    AnonymousId,
    Batch,
    Group,
    Identify,
    Page,
    Screen,
    Track,
    UserAndAnonymousId,
    UserId,
)

FIXED_TS = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def collector_app() -> FastAPI:
    return create_app()


@pytest.fixture()
def api_client(collector_app) -> TestClient:  # noqa: D401 – simple alias
    return TestClient(collector_app)


@pytest.fixture()
def sample_messages():
    """One of each kind, with a spread of optional fields set."""

    return [
        Identify(
            user=UserId(user_id="usr_1"),
            traits={"email": "a@example.com", "plan": "pro"},
            timestamp=FIXED_TS,
            extra={"messageId": "m-1"},
        ),
        Track(
            user=AnonymousId(anonymous_id="anon_1"),
            event="Order Completed",
            properties={"revenue": 12.5, "items": [{"sku": "x"}]},
            context={"ip": "127.0.0.1"},
        ),
        Page(
            user=UserAndAnonymousId(user_id="usr_2", anonymous_id="anon_2"),
            name="Pricing",
            properties={"path": "/pricing"},
            integrations={"All": False, "Mixpanel": True},
        ),
        Page(user=UserId(user_id="usr_3")),
        Screen(user=UserId(user_id="usr_4"), name="Home", properties={}),
        Group(user=UserId(user_id="usr_5"), group_id="grp_1", traits={"name": "Initech"}),
        Alias(user=UserId(user_id="usr_6"), previous_id="anon_6", timestamp=FIXED_TS),
    ]


@pytest.fixture()
def sample_batch(sample_messages) -> Batch:
    return Batch(batch=sample_messages, context={"library": {"name": "trackwire"}})
