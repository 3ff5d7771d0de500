from __future__ import annotations

import pytest

from notifier.notifications.collapse_keys import CategoryCollapseKey, TimestampCollapseKey
from notifier.notifications.contracts import Message, MessageKind, NotificationRecord, UserRecord
from notifier.notifications.payloads import DEFAULT_CHAT_TITLE, IMAGE_PLACEHOLDER, PayloadBuilder, truncate_message_body


@pytest.mark.parametrize("length", [0, 1, 99, 100])
def test_truncate_message_body_keeps_short_text(length):
  text = "x" * length
  assert truncate_message_body(text) == text


@pytest.mark.parametrize("length", [101, 250])
def test_truncate_message_body_clips_long_text_with_ellipsis(length):
  text = "".join(str(index % 10) for index in range(length))
  assert truncate_message_body(text) == text[:100] + "..."


def test_broadcast_payload_uses_record_title_and_content(payment_record):
  payload = PayloadBuilder().broadcast(payment_record)

  assert payload.title == "Payment received"
  assert payload.body == "Your payment was confirmed"
  assert payload.envelopes.apns.title == "Payment received"
  assert payload.envelopes.apns.body == "Your payment was confirmed"


def test_broadcast_data_always_carries_routing_fields():
  record = NotificationRecord(id="notif-2", recipient_ids=("buyer",), title="t", content="c", category="system")
  data = PayloadBuilder().broadcast(record).data.as_message_data()

  assert data == {"type": "system", "transactionId": "", "notificationId": "notif-2", "click_action": "FLUTTER_NOTIFICATION_CLICK"}


def test_broadcast_data_includes_only_present_correlation_fields(payment_record):
  data = PayloadBuilder().broadcast(payment_record).data.as_message_data()

  assert data["sellerId"] == "seller"
  assert data["buyerId"] == "buyer"
  assert "itemId" not in data
  assert data["transactionId"] == "tx-9"


def test_broadcast_data_keeps_empty_correlation_field_distinct_from_absent():
  record = NotificationRecord(id="n", recipient_ids=("buyer",), title="t", content="c", category="payment", item_id="")
  data = PayloadBuilder().broadcast(record).data.as_message_data()

  assert data["itemId"] == ""
  assert "sellerId" not in data


def test_broadcast_envelopes_request_immediate_high_priority_delivery(payment_record):
  builder = PayloadBuilder(android_channel_id="shop_channel", broadcast_analytics_label="payment_notification")
  payload = builder.broadcast(payment_record)
  android = payload.envelopes.android
  apns = payload.envelopes.apns

  assert android.channel_id == "shop_channel"
  assert android.priority == "high"
  assert android.ttl_seconds == 0
  assert android.default_sound is True
  assert apns.headers == {"apns-priority": "10", "apns-push-type": "alert"}
  assert apns.sound == "default"
  assert apns.badge == 1
  assert payload.analytics_label == "payment_notification"


def test_broadcast_collapse_key_comes_from_strategy(payment_record):
  builder = PayloadBuilder(collapse_key=TimestampCollapseKey(prefix="wesell", clock=lambda: 1700000000.123))
  assert builder.broadcast(payment_record).envelopes.android.collapse_key == "wesell_payment_1700000000123"

  builder = PayloadBuilder(collapse_key=CategoryCollapseKey(prefix="wesell"))
  assert builder.broadcast(payment_record).envelopes.android.collapse_key == "wesell_payment"


def test_broadcast_payload_is_deterministic_without_timestamp_key(payment_record):
  builder = PayloadBuilder()
  assert builder.broadcast(payment_record) == builder.broadcast(payment_record)


def test_chat_payload_uses_sender_name_and_text_body():
  sender = UserRecord(id="seller", display_name="Bruno", push_token=None)
  payload = PayloadBuilder().chat("chat-1", sender, Message(sender_id="seller", kind=MessageKind.TEXT, body="Is it still available?"))

  assert payload.title == "Bruno"
  assert payload.body == "Is it still available?"
  assert payload.data.as_message_data() == {"type": "chat", "chatId": "chat-1", "senderId": "seller", "click_action": "FLUTTER_NOTIFICATION_CLICK"}
  assert payload.envelopes.android.collapse_key is None
  assert payload.analytics_label is None


def test_chat_payload_falls_back_to_default_title():
  sender = UserRecord(id="seller", display_name=None, push_token=None)
  payload = PayloadBuilder().chat("chat-1", sender, Message(sender_id="seller", kind=MessageKind.TEXT, body="hi"))

  assert payload.title == DEFAULT_CHAT_TITLE


def test_chat_payload_truncates_long_text():
  sender = UserRecord(id="seller", display_name="Bruno", push_token=None)
  payload = PayloadBuilder().chat("chat-1", sender, Message(sender_id="seller", kind=MessageKind.TEXT, body="a" * 150))

  assert payload.body == "a" * 100 + "..."
  assert payload.envelopes.apns.body == payload.body


@pytest.mark.parametrize("body", [None, "", "a caption that must not be shown"])
def test_chat_image_message_always_uses_placeholder(body):
  sender = UserRecord(id="seller", display_name="Bruno", push_token=None)
  payload = PayloadBuilder().chat("chat-1", sender, Message(sender_id="seller", kind=MessageKind.IMAGE, body=body))

  assert payload.body == IMAGE_PLACEHOLDER


def test_builder_does_not_mutate_record(payment_record):
  snapshot = NotificationRecord(**payment_record.__dict__)
  PayloadBuilder().broadcast(payment_record)
  assert payment_record == snapshot


def test_chat_envelopes_carry_only_priority_channel_sound_and_badge():
  sender = UserRecord(id="seller", display_name="Bruno", push_token=None)
  envelopes = PayloadBuilder(android_channel_id="shop_channel").chat("chat-1", sender, Message(sender_id="seller", kind=MessageKind.TEXT, body="hi")).envelopes

  assert envelopes.android.channel_id == "shop_channel"
  assert envelopes.android.priority == "high"
  assert envelopes.android.default_sound is True
  assert envelopes.android.ttl_seconds is None
  assert envelopes.android.sticky is None
  assert envelopes.android.visibility is None
  assert envelopes.apns.headers == {}
  assert envelopes.apns.sound == "default"
  assert envelopes.apns.badge == 1
  assert envelopes.apns.content_available is None
  assert envelopes.apns.mutable_content is None
