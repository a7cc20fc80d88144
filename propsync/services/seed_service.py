# propsync/services/seed_service.py

import json
import logging

from firebase_admin import auth
from firebase_admin import exceptions as firebase_exceptions
from google.cloud import firestore

from propsync.constants import ORGANIZATIONS_COLLECTION, USERS_COLLECTION
from propsync.exceptions import PropSyncError, ValidationError
from propsync.services.db_service import get_roles, set_document

log = logging.getLogger(__name__)

def load_accounts_file(path: str) -> dict:
    """
    Reads a seed file of the form
        {"organizations": [{"id": ..., "name": ...}, ...],
         "accounts": [{"email", "password", "displayName", "roleId", "organizationId"}, ...]}
    """
    with open(path, encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, dict) or not isinstance(data.get('accounts', []), list):
        raise ValidationError("seed file must be an object with an 'accounts' list", field='accounts')
    return data

def ensure_auth_user(account: dict, auth_client=auth):
    """Returns the Auth user for the account's email, creating it if needed."""
    try:
        user = auth_client.get_user_by_email(account['email'])
        log.info(f"  - User {account['email']} already exists in Auth")
        return user
    except auth.UserNotFoundError:
        user = auth_client.create_user(
            email=account['email'],
            password=account.get('password'),
            display_name=account.get('displayName'),
            email_verified=True,
        )
        log.info(f"  - Created Auth user {account['email']}")
        return user

def build_user_profile(uid: str, account: dict, role: dict) -> dict:
    return {
        'uid': uid,
        'email': account['email'],
        'displayName': account.get('displayName'),
        'organizationId': account.get('organizationId'),
        'roleId': account['roleId'],
        'permissions': role.get('permissions') or [],
        'status': account.get('status', 'active'),
        'createdAt': firestore.SERVER_TIMESTAMP,
        'updatedAt': firestore.SERVER_TIMESTAMP,
    }

def seed_accounts(db, accounts_file: str, auth_client=auth) -> dict:
    """
    Creates the organizations and accounts listed in `accounts_file`. Each account
    gets its Auth user and a users/{uid} profile carrying its role's permissions.
    A failing account is logged and the rest continue.
    """
    data = load_accounts_file(accounts_file)

    organizations = data.get('organizations', [])
    for organization in organizations:
        org_id = organization['id']
        doc = {k: v for k, v in organization.items() if k != 'id'}
        doc.setdefault('status', 'active')
        doc['createdAt'] = firestore.SERVER_TIMESTAMP
        doc['updatedAt'] = firestore.SERVER_TIMESTAMP
        set_document(db, ORGANIZATIONS_COLLECTION, org_id, doc, merge=True)
        log.info(f"Wrote organization {org_id}")

    roles = {role['id']: role for role in get_roles(db)}
    log.info(f"Found {len(roles)} roles")

    created, failed = [], []
    for account in data.get('accounts', []):
        email = account.get('email')
        role = roles.get(account.get('roleId'))
        if role is None:
            log.error(f"Role {account.get('roleId')} not found, skipping {email}")
            failed.append(email)
            continue
        try:
            user = ensure_auth_user(account, auth_client)
            profile = build_user_profile(user.uid, account, role)
            set_document(db, USERS_COLLECTION, user.uid, profile, merge=True)
        except (firebase_exceptions.FirebaseError, PropSyncError, ValueError) as e:
            log.error(f"Error setting up {email}: {e}")
            failed.append(email)
            continue
        log.info(f"Updated profile for {email} ({account['roleId']}, {len(profile['permissions'])} permissions)")
        created.append(email)

    return {'organizations': len(organizations), 'accounts': created, 'failed': failed}
