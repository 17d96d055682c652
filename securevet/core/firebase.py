"""
Firebase Admin setup.

The backend uses the Admin SDK for two things: Firestore as the document
store for every collection, and (when AUTH_PROVIDER=firebase) verification
of Firebase ID tokens sent by the frontend.
"""

import logging
import os

import firebase_admin
from firebase_admin import credentials, firestore

from securevet.core.config import settings

logger = logging.getLogger(__name__)

# Firestore client shared by every request
db = None


def init_firebase():
    """
    Start the Admin SDK once per process and return the Firestore client.

    The service account file comes from FIREBASE_CREDENTIALS.
    """
    global db

    # uvicorn --reload imports the app again in the same process
    if not firebase_admin._apps:
        key_path = settings.FIREBASE_CREDENTIALS
        if not os.path.exists(key_path):
            raise RuntimeError(
                f"Firebase service account not found at {key_path}. "
                "Point FIREBASE_CREDENTIALS at the JSON key downloaded from the Firebase console."
            )
        firebase_admin.initialize_app(credentials.Certificate(key_path))
        logger.info("Firebase Admin initialized from %s", key_path)

    if db is None:
        db = firestore.client()
    return db


def get_db():
    """Firestore client, starting the Admin SDK on first use."""
    return db if db is not None else init_firebase()
