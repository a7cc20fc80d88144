# propsync/services/role_service.py

import logging

from propsync.constants import ROLES_COLLECTION
from propsync.logic.role_logic import plan_role_updates
from propsync.services.batch_service import BatchWriter
from propsync.services.db_service import document_ref, get_roles

log = logging.getLogger(__name__)

def update_roles(db, dry_run: bool = False) -> dict:
    """
    Backfills missing role display names and sets the organization-scoped
    permission set on property_manager roles.
    """
    roles = get_roles(db)
    updates = plan_role_updates(roles)
    log.info(f"Found {len(roles)} roles, {len(updates)} need updating")
    for role_id, patch in updates:
        log.info(f"  - {role_id}: {', '.join(sorted(patch))}")

    if dry_run or not updates:
        return {'checked': len(roles), 'updated': 0, 'planned': updates}

    with BatchWriter(db) as writer:
        for role_id, patch in updates:
            writer.update(document_ref(db, ROLES_COLLECTION, role_id), patch, record_id=role_id)

    return {'checked': len(roles), 'updated': len(writer.committed), 'planned': updates}
