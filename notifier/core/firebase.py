import logging

import firebase_admin
from firebase_admin import credentials, firestore
from google.cloud.firestore import Client as FirestoreClient

from notifier.config import Settings

logger = logging.getLogger(__name__)


def initialize_firebase(settings: Settings) -> firebase_admin.App | None:
  """Initializes the Firebase Admin SDK."""
  if firebase_admin._apps:
    return firebase_admin.get_app()

  if not settings.firebase_project_id:
    logger.warning("Firebase Project ID not set. Firebase Admin SDK not initialized.")
    return None

  try:
    if settings.firebase_service_account_json_path:
      cred = credentials.Certificate(settings.firebase_service_account_json_path)
      app = firebase_admin.initialize_app(cred, {"projectId": settings.firebase_project_id})
    else:
      # Use default credentials (e.g. Google Application Default Credentials)
      app = firebase_admin.initialize_app(options={"projectId": settings.firebase_project_id})
    logger.info("Firebase Admin SDK initialized successfully.")
    return app
  except Exception as e:  # noqa: BLE001
    logger.error("Failed to initialize Firebase Admin SDK: %s", e)
    return None


def get_firestore_client(settings: Settings) -> FirestoreClient | None:
  """Returns a Firestore client instance. Lazily initializes if needed."""
  if initialize_firebase(settings) is None:
    return None

  try:
    return firestore.client()
  except Exception as e:  # noqa: BLE001
    logger.error("Failed to get Firestore client: %s", e)
    return None
