# propsync/services/manager_service.py

import logging

from propsync.constants import PROPERTIES_COLLECTION
from propsync.logic.manager_logic import assignment_breakdown, filter_properties_by_access, plan_manager_assignment
from propsync.services.batch_service import BatchWriter
from propsync.services.db_service import document_ref, find_user_by_email, get_properties_for_organization

log = logging.getLogger(__name__)

def assign_manager_to_properties(db, manager_email: str, selected_property_ids=None, dry_run: bool = False) -> dict:
    """
    Adds the manager to assignedManagers of every property in their organization,
    or only of `selected_property_ids`.
    Raises NotFoundError when no user has this email.
    Returns {'assigned', 'alreadyAssigned', 'manager', 'ignored'}.
    """
    manager = find_user_by_email(db, manager_email)
    manager_id = manager['id']
    organization_id = manager.get('organizationId')
    log.info(f"Manager found: {manager_id} (organization {organization_id})")

    properties = get_properties_for_organization(db, organization_id)
    log.info(f"Found {len(properties)} properties in organization")

    plan = plan_manager_assignment(manager_id, properties, selected_property_ids)
    result = {**plan.summary(), 'manager': manager, 'ignored': plan.ignored}

    if not plan.to_assign:
        log.info("Manager is already assigned to every property in scope")
        return result
    if dry_run:
        log.info(f"Dry run: manager would be assigned to {len(plan.to_assign)} properties")
        return result

    with BatchWriter(db) as writer:
        for property_id, patch in plan.to_assign:
            writer.update(document_ref(db, PROPERTIES_COLLECTION, property_id), patch, record_id=property_id)

    result['assigned'] = len(writer.committed)
    result['failed'] = writer.failed
    log.info(f"Assigned manager to {result['assigned']} properties")
    return result

def check_manager_assignments(db, manager_email: str) -> dict:
    """
    Read-only diagnostic: how the user is attached to each property of their
    organization and which properties the access filter lets them manage.
    """
    manager = find_user_by_email(db, manager_email)
    properties = get_properties_for_organization(db, manager.get('organizationId'))
    breakdown = assignment_breakdown(manager['id'], properties)
    accessible = filter_properties_by_access(manager, properties)
    if not accessible:
        log.warning(f"User {manager_email} can manage no properties; their dashboard will be empty")
    return {
        'manager': manager,
        'total': len(properties),
        'breakdown': breakdown,
        'accessible': accessible,
    }
