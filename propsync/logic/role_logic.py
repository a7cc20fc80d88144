import logging

log = logging.getLogger(__name__)

ROLE_DISPLAY_NAMES = {
    'super_admin': 'Super Administrator',
    'org_admin': 'Organization Administrator',
    'property_manager': 'Property Manager',
    'financial_viewer': 'Financial Viewer',
    'caretaker': 'Caretaker',
}

# Managers get organization-wide access to properties, tenants and payments
PROPERTY_MANAGER_PERMISSIONS = [
    'properties:create:organization',
    'properties:read:organization',
    'properties:update:organization',
    'properties:delete:organization',
    'tenants:create:organization',
    'tenants:read:organization',
    'tenants:update:organization',
    'payments:create:organization',
    'payments:read:organization',
    'reports:read:organization',
    'maintenance:create:assigned',
    'maintenance:update:assigned',
]

def display_name_for(role_name: str) -> str:
    """Human readable name for a role, e.g. 'org_admin' -> 'Organization Administrator'."""
    if role_name in ROLE_DISPLAY_NAMES:
        return ROLE_DISPLAY_NAMES[role_name]
    return ' '.join(word[:1].upper() + word[1:] for word in role_name.split('_'))

def has_permission(permissions, required: str) -> bool:
    """
    Checks a flattened scope string like 'properties:read:organization'.
    A 'resource:action:all' grant covers every narrower scope of the same action.
    """
    if not permissions or not isinstance(permissions, (list, tuple, set)):
        return False
    if required in permissions:
        return True
    parts = required.split(':')
    if len(parts) >= 2 and f"{parts[0]}:{parts[1]}:all" in permissions:
        return True
    return False

def plan_role_updates(roles: list) -> list:
    """
    Returns (role_id, patch) pairs for roles that need a displayName backfilled
    or, for property_manager roles, the organization-scoped permission set.
    """
    updates = []
    for role in roles:
        patch = {}
        role_name = role.get('name') or ''
        if not role.get('displayName') and role_name:
            patch['displayName'] = display_name_for(role_name)
        if role_name == 'property_manager' and sorted(role.get('permissions') or []) != sorted(PROPERTY_MANAGER_PERMISSIONS):
            patch['permissions'] = list(PROPERTY_MANAGER_PERMISSIONS)
            patch['description'] = 'Manages all organization properties and handles on-site maintenance'
        if patch:
            updates.append((role['id'], patch))
    return updates
