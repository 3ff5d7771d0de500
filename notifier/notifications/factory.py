"""Factory helpers for notification dispatchers."""

from __future__ import annotations

from dataclasses import dataclass

from notifier.config import Settings
from notifier.core.firebase import get_firestore_client, initialize_firebase
from notifier.notifications.broadcast import BroadcastDispatcher
from notifier.notifications.chat import ChatDeltaDispatcher
from notifier.notifications.collapse_keys import build_collapse_key_strategy
from notifier.notifications.contracts import PushGateway, UserDirectory
from notifier.notifications.payloads import PayloadBuilder
from notifier.notifications.push_gateway import FcmPushGateway, NullPushGateway
from notifier.notifications.token_resolver import TokenResolver
from notifier.notifications.user_directory import FirestoreUserDirectory, NullUserDirectory


@dataclass(frozen=True)
class Dispatchers:
  broadcast: BroadcastDispatcher
  chat: ChatDeltaDispatcher


def build_payload_builder(settings: Settings) -> PayloadBuilder:
  """Construct the payload builder from deployment settings."""
  collapse_key = build_collapse_key_strategy(settings.collapse_key_strategy, prefix=settings.collapse_key_prefix)
  return PayloadBuilder(android_channel_id=settings.android_channel_id, click_action=settings.click_action, broadcast_analytics_label=settings.broadcast_analytics_label, collapse_key=collapse_key)


def build_dispatchers(settings: Settings, *, directory: UserDirectory | None = None, gateway: PushGateway | None = None) -> Dispatchers:
  """Construct both dispatchers based on environment configuration."""
  # Read users from Firestore only when a project is configured.
  if directory is None:
    client = get_firestore_client(settings) if settings.firebase_project_id else None
    directory = FirestoreUserDirectory(client=client, collection=settings.users_collection) if client is not None else NullUserDirectory()

  # Push is disabled by default to avoid accidental delivery in dev/test.
  if gateway is None:
    app = initialize_firebase(settings) if settings.push_enabled else None
    gateway = FcmPushGateway(app=app, max_attempts=settings.push_max_attempts, backoff_seconds=settings.push_retry_backoff_seconds) if app is not None else NullPushGateway()

  resolver = TokenResolver(directory=directory, max_concurrency=settings.lookup_concurrency)
  payloads = build_payload_builder(settings)
  return Dispatchers(broadcast=BroadcastDispatcher(resolver=resolver, payloads=payloads, gateway=gateway), chat=ChatDeltaDispatcher(resolver=resolver, payloads=payloads, gateway=gateway))
