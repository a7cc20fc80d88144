import os
import logging
from google.cloud import secretmanager
from google.api_core.exceptions import GoogleAPICallError, NotFound, PermissionDenied

# Set up a module-level logger
log = logging.getLogger(__name__)

def access_secret_version(secret_id, version_id="latest", client=None):
    """Access the payload for the given secret version if one exists.

    The version can be a version number or the string "latest".
    Returns None when the secret cannot be read.
    """
    project_id = os.environ.get('GCLOUD_PROJECT') or os.environ.get('FIREBASE_PROJECT_ID')
    if not project_id:
        log.warning(f"Neither GCLOUD_PROJECT nor FIREBASE_PROJECT_ID is set, cannot read secret '{secret_id}'.")
        return None

    name = f"projects/{project_id}/secrets/{secret_id}/versions/{version_id}"
    try:
        client = client or secretmanager.SecretManagerServiceClient()
        response = client.access_secret_version(request={"name": name})
        return response.payload.data.decode("UTF-8").strip()
    except PermissionDenied as e:
        log.error(f"Permission denied when accessing secret '{secret_id}': {e}")
        log.error(f"Please ensure the service account has the 'Secret Manager Secret Accessor' role for secret '{secret_id}'.")
        return None
    except NotFound:
        log.warning(f"Secret '{secret_id}' does not exist in project {project_id}.")
        return None
    except GoogleAPICallError as e:
        log.error(f"Unexpected error accessing secret '{secret_id}': {e}")
        return None
