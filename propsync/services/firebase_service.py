# propsync/services/firebase_service.py

import os
import logging

import firebase_admin
from firebase_admin import credentials, firestore

from propsync.services.secret_manager_service import access_secret_version

log = logging.getLogger(__name__)

TOKEN_URI = 'https://oauth2.googleapis.com/token'

def load_credentials():
    """
    Resolves the service account to use, in order:
      1. a service account JSON file (PROPSYNC_SERVICE_ACCOUNT or GOOGLE_APPLICATION_CREDENTIALS),
      2. FIREBASE_PROJECT_ID / FIREBASE_CLIENT_EMAIL / FIREBASE_PRIVATE_KEY from the environment,
         reading the private key from Secret Manager when it is not set.
    Returns None to fall back to application default credentials.
    """
    key_path = os.environ.get('PROPSYNC_SERVICE_ACCOUNT') or os.environ.get('GOOGLE_APPLICATION_CREDENTIALS')
    if key_path and os.path.exists(key_path):
        log.info(f"Using service account file {key_path}")
        return credentials.Certificate(key_path)

    project_id = os.environ.get('FIREBASE_PROJECT_ID')
    client_email = os.environ.get('FIREBASE_CLIENT_EMAIL')
    if not project_id or not client_email:
        return None

    private_key = os.environ.get('FIREBASE_PRIVATE_KEY') or access_secret_version('FIREBASE_PRIVATE_KEY')
    if not private_key:
        log.warning("FIREBASE_CLIENT_EMAIL is set but no private key was found; using application default credentials.")
        return None

    return credentials.Certificate({
        'type': 'service_account',
        'project_id': project_id,
        'client_email': client_email,
        'private_key': private_key.replace('\\n', '\n'),
        'token_uri': TOKEN_URI,
    })

def initialize_firebase():
    """Returns the default Firebase app, initializing it on first use."""
    try:
        return firebase_admin.get_app()
    except ValueError:
        cred = load_credentials()
        app = firebase_admin.initialize_app(cred) if cred else firebase_admin.initialize_app()
        log.info("Firebase Admin SDK initialized")
        return app

def get_firestore_client(app=None):
    """
    Builds the Firestore client. Entry points call this once and pass the client
    to every service function.
    """
    return firestore.client(app or initialize_firebase())
