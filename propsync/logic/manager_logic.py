from dataclasses import dataclass, field
import logging

from propsync.logic.role_logic import has_permission

# Set up a module-level logger
log = logging.getLogger(__name__)


@dataclass
class AssignmentPlan:
    manager_id: str
    to_assign: list = field(default_factory=list)   # (property_id, patch)
    already_assigned: list = field(default_factory=list)
    ignored: list = field(default_factory=list)

    def summary(self) -> dict:
        return {'assigned': len(self.to_assign), 'alreadyAssigned': len(self.already_assigned)}


def is_assigned_manager(property_doc: dict, manager_id: str) -> bool:
    return manager_id in (property_doc.get('assignedManagers') or [])


def is_caretaker(property_doc: dict, user_id: str) -> bool:
    return bool(user_id) and property_doc.get('caretakerId') == user_id


def plan_manager_assignment(manager_id: str, properties: list, selected_property_ids=None) -> AssignmentPlan:
    """
    Works out which of the organization's properties need `manager_id` appended to
    assignedManagers. With `selected_property_ids`, only those properties are considered;
    selected ids that are not in `properties` are reported as ignored.
    Properties where the manager is already present produce no patch.
    """
    plan = AssignmentPlan(manager_id=manager_id)
    known_ids = {p['id'] for p in properties}

    if selected_property_ids is not None:
        selected = set(selected_property_ids)
        plan.ignored = [pid for pid in selected_property_ids if pid not in known_ids]
        for pid in plan.ignored:
            log.warning(f"Property {pid} is not in the manager's organization, ignoring")
        properties = [p for p in properties if p['id'] in selected]

    for property_doc in properties:
        label = property_doc.get('name') or property_doc['id']
        if is_assigned_manager(property_doc, manager_id):
            log.info(f"  - Already assigned: {label}")
            plan.already_assigned.append(property_doc['id'])
            continue
        current = list(property_doc.get('assignedManagers') or [])
        log.info(f"  - Will assign to: {label}")
        plan.to_assign.append((property_doc['id'], {'assignedManagers': current + [manager_id]}))

    return plan


def filter_properties_by_access(user: dict, properties: list) -> list:
    """
    The set of properties a user's permissions let them manage, derived from the
    same assignment data the dashboard reads:
      properties:read:all          -> every property
      properties:read:organization -> properties of the user's organization
      properties:read:assigned     -> organization properties where the user is an
                                      assigned manager or the caretaker
      anything else                -> nothing
    """
    permissions = user.get('permissions') or []
    organization_id = user.get('organizationId')
    user_id = user.get('id')

    if has_permission(permissions, 'properties:read:all'):
        return list(properties)

    org_properties = [p for p in properties if p.get('organizationId') == organization_id]
    if has_permission(permissions, 'properties:read:organization'):
        return org_properties
    if has_permission(permissions, 'properties:read:assigned'):
        return [p for p in org_properties if is_assigned_manager(p, user_id) or is_caretaker(p, user_id)]
    return []


def assignment_breakdown(user_id: str, properties: list) -> dict:
    """Groups properties by how the user is attached to them."""
    breakdown = {'manager': [], 'caretaker': [], 'unassigned': []}
    for property_doc in properties:
        as_manager = is_assigned_manager(property_doc, user_id)
        as_caretaker = is_caretaker(property_doc, user_id)
        if as_manager:
            breakdown['manager'].append(property_doc)
        if as_caretaker:
            breakdown['caretaker'].append(property_doc)
        if not as_manager and not as_caretaker:
            breakdown['unassigned'].append(property_doc)
    return breakdown
