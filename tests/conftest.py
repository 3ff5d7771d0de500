"""Test configuration for importing the notifier package."""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
  sys.path.insert(0, str(ROOT))

from unittest.mock import MagicMock  # noqa: E402

import pytest  # noqa: E402

from notifier.notifications.contracts import BatchOutcome, DeliveryResult, NotificationRecord, UserRecord  # noqa: E402


@pytest.fixture
def anyio_backend():
  return "asyncio"


@pytest.fixture
def users() -> dict[str, UserRecord]:
  return {
    "buyer": UserRecord(id="buyer", display_name="Ana", push_token="token-buyer-aaaaaaaaaaaaaaaaaaaa"),
    "seller": UserRecord(id="seller", display_name="Bruno", push_token="token-seller-bbbbbbbbbbbbbbbbbbbb"),
    "courier": UserRecord(id="courier", display_name="Caio", push_token="token-courier-cccccccccccccccccc"),
    "silent": UserRecord(id="silent", display_name="Dora", push_token=None),
  }


@pytest.fixture
def directory(users):
  """A user registry mock backed by the ``users`` fixture."""
  registry = MagicMock()
  registry.get_user.side_effect = lambda user_id: users.get(user_id)
  return registry


@pytest.fixture
def gateway():
  """A push gateway mock that reports every delivery as successful."""
  push = MagicMock()
  push.send_multicast.side_effect = lambda tokens, payload: BatchOutcome.from_results([DeliveryResult(token=token, success=True) for token in tokens])
  push.send.side_effect = lambda token, payload: DeliveryResult(token=token, success=True)
  return push


@pytest.fixture
def payment_record() -> NotificationRecord:
  return NotificationRecord(id="notif-1", recipient_ids=("buyer", "seller"), title="Payment received", content="Your payment was confirmed", category="payment", transaction_id="tx-9", seller_id="seller", buyer_id="buyer")
