import logging

import firebase_admin
from firebase_admin import credentials

from pings.config import Settings

logger = logging.getLogger(__name__)


def initialize_firebase(settings: Settings) -> bool:
  """Initializes the Firebase Admin SDK. Returns True once an app is available."""
  if firebase_admin._apps:
    return True

  if not settings.firebase_project_id:
    logger.warning("Firebase Project ID not set. Firebase Admin SDK not initialized.")
    return False

  if settings.firebase_service_account_json_path:
    cred = credentials.Certificate(settings.firebase_service_account_json_path)
    firebase_admin.initialize_app(cred, {"projectId": settings.firebase_project_id})
  else:
    # Use default credentials (e.g. Google Application Default Credentials)
    firebase_admin.initialize_app(options={"projectId": settings.firebase_project_id})
  logger.info("Firebase Admin SDK initialized successfully.")
  return True
