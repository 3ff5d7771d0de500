from __future__ import annotations

import pytest

from notifier.notifications.contracts import ChatParticipants, MessageKind
from notifier.notifications.documents import chat_from_document, messages_from_document, notification_from_document, user_from_document


def test_notification_from_document_maps_store_fields():
  record = notification_from_document("n-1", {"userIds": ["a", "b", "a"], "title": "Paid", "content": "Body", "type": "payment", "transactionId": "tx", "sellerId": "s", "itemId": None})

  assert record.id == "n-1"
  assert record.recipient_ids == ("a", "b")
  assert record.category == "payment"
  assert record.transaction_id == "tx"
  assert record.seller_id == "s"
  assert record.buyer_id is None
  assert record.item_id is None


def test_notification_from_document_without_recipients():
  assert notification_from_document("n-1", {"title": "t"}).recipient_ids == ()


def test_user_from_document_treats_empty_token_as_missing():
  user = user_from_document("u", {"username": "Ana", "fcmToken": ""})
  assert user.push_token is None
  assert user.display_name == "Ana"


def test_chat_from_document_decodes_participants_and_messages():
  chat = chat_from_document("c-1", {"userIds": {"sender": "a", "receiver": "b"}, "messages": [{"senderId": "a", "type": "text", "content": "hi"}, {"senderId": "b", "type": "image", "content": "https://img"}, {"senderId": "a", "type": "sticker"}]})

  assert chat.participants == ChatParticipants(initiator="a", counterparty="b")
  assert [message.kind for message in chat.messages] == [MessageKind.TEXT, MessageKind.IMAGE, MessageKind.IMAGE]
  assert chat.messages[0].body == "hi"


def test_chat_from_document_requires_participants():
  with pytest.raises(ValueError):
    chat_from_document("c-1", {"messages": []})


def test_messages_from_document_needs_no_participants():
  messages = messages_from_document({"messages": [{"senderId": "a", "type": "text", "content": "hi"}, "not-a-message"]})

  assert [message.body for message in messages] == ["hi"]
  assert messages_from_document({}) == ()
