"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from notifier.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)

COLLAPSE_KEY_STRATEGIES = ("timestamp", "category", "none")


@dataclass(frozen=True)
class Settings:
  """Typed settings for the notification dispatcher."""

  environment: str
  debug: bool
  log_dir: Path
  log_max_bytes: int
  log_backup_count: int
  firebase_project_id: str | None
  firebase_service_account_json_path: str | None
  push_enabled: bool
  users_collection: str
  android_channel_id: str
  click_action: str
  broadcast_analytics_label: str | None
  collapse_key_strategy: str
  collapse_key_prefix: str
  push_max_attempts: int
  push_retry_backoff_seconds: tuple[float, ...]
  lookup_concurrency: int
  event_secret: str | None


def _parse_bool(raw: str | None) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None:
    return False

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value


def _parse_positive_int(name: str, default: str) -> int:
  value = int(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive integer.")
  return value


def _parse_backoff(raw: str | None) -> tuple[float, ...]:
  """Parse a comma separated list of pause durations in seconds."""

  if raw is None or raw.strip() == "":
    return (0.5, 1.0)

  values = tuple(float(part) for part in raw.split(",") if part.strip())
  if any(value < 0 for value in values):
    raise ValueError("NOTIFIER_PUSH_RETRY_BACKOFF_SECONDS must not contain negative values.")

  return values


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("NOTIFIER_ENV", "development").lower()

  # Toggle verbose error output in non-production environments.
  debug = _parse_bool(os.getenv("NOTIFIER_DEBUG"))

  log_dir_raw = _optional_str(os.getenv("NOTIFIER_LOG_DIR"))
  log_dir = Path(log_dir_raw) if log_dir_raw else Path(__file__).resolve().parent.parent / "logs"

  log_max_bytes = _parse_positive_int("NOTIFIER_LOG_MAX_BYTES", "5242880")  # 5MB default
  log_backup_count = int(os.getenv("NOTIFIER_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("NOTIFIER_LOG_BACKUP_COUNT must be zero or a positive integer.")

  firebase_project_id = _optional_str(os.getenv("FIREBASE_PROJECT_ID"))
  push_enabled = _parse_bool(os.getenv("NOTIFIER_PUSH_ENABLED"))
  # Delivery goes through the Admin SDK, which needs a project to bind to.
  if push_enabled and not firebase_project_id:
    raise ValueError("FIREBASE_PROJECT_ID must be set when push delivery is enabled.")

  collapse_key_strategy = (os.getenv("NOTIFIER_COLLAPSE_KEY_STRATEGY") or "timestamp").strip().lower()
  if collapse_key_strategy not in COLLAPSE_KEY_STRATEGIES:
    raise ValueError(f"NOTIFIER_COLLAPSE_KEY_STRATEGY must be one of {', '.join(COLLAPSE_KEY_STRATEGIES)}.")

  push_max_attempts = _parse_positive_int("NOTIFIER_PUSH_MAX_ATTEMPTS", "3")
  lookup_concurrency = _parse_positive_int("NOTIFIER_LOOKUP_CONCURRENCY", "10")

  return Settings(
    environment=environment,
    debug=debug,
    log_dir=log_dir,
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    firebase_project_id=firebase_project_id,
    firebase_service_account_json_path=_optional_str(os.getenv("FIREBASE_SERVICE_ACCOUNT_JSON_PATH")),
    push_enabled=push_enabled,
    users_collection=(os.getenv("NOTIFIER_USERS_COLLECTION") or "users").strip(),
    android_channel_id=(os.getenv("NOTIFIER_ANDROID_CHANNEL_ID") or "wesell_channel").strip(),
    click_action=(os.getenv("NOTIFIER_CLICK_ACTION") or "FLUTTER_NOTIFICATION_CLICK").strip(),
    broadcast_analytics_label=_optional_str(os.getenv("NOTIFIER_BROADCAST_ANALYTICS_LABEL", "payment_notification")),
    collapse_key_strategy=collapse_key_strategy,
    collapse_key_prefix=(os.getenv("NOTIFIER_COLLAPSE_KEY_PREFIX") or "wesell").strip(),
    push_max_attempts=push_max_attempts,
    push_retry_backoff_seconds=_parse_backoff(os.getenv("NOTIFIER_PUSH_RETRY_BACKOFF_SECONDS")),
    lookup_concurrency=lookup_concurrency,
    event_secret=_optional_str(os.getenv("NOTIFIER_EVENT_SECRET")),
  )
