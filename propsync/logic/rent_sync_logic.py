from dataclasses import dataclass, field
import logging

from propsync.constants import RENT_EPSILON
from propsync.exceptions import DuplicateSpaceIdError
from propsync.logic.space_logic import find_duplicate_space_ids, resolve_space, rent_of, name_of
from propsync.utils.number_utils import to_number

# Set up a module-level logger
log = logging.getLogger(__name__)

SKIP_NO_SPACE_ID = 'no-space-id'
SKIP_NO_PROPERTY = 'property-not-found'
SKIP_NO_SPACE = 'no-space'
SKIP_NO_SPACE_RENT = 'no-space-rent'
SKIP_INVALID_SPACE_RENT = 'invalid-space-rent'
SKIP_DUPLICATE_SPACE = 'duplicate-space-id'


@dataclass
class RentUpdate:
    rent_id: str
    tenant_name: str | None
    property_name: str | None
    space_name: str | None
    old_rent: float | None
    new_rent: float

    @property
    def patch(self) -> dict:
        return {'monthlyRent': self.new_rent, 'baseRent': self.new_rent}


@dataclass
class SyncReport:
    total: int = 0
    updated: list = field(default_factory=list)
    unchanged: list = field(default_factory=list)
    skipped: list = field(default_factory=list)
    errors: list = field(default_factory=list)
    duplicate_space_ids: dict = field(default_factory=dict)

    def summary(self) -> dict:
        return {
            'total': self.total,
            'updated': len(self.updated),
            'unchanged': len(self.unchanged),
            'skipped': len(self.skipped),
            'errors': len(self.errors),
        }


def rents_differ(space_rent, current_rent) -> bool:
    """True when the two amounts differ by at least RENT_EPSILON. A missing or unreadable stored rent counts as 0."""
    return abs(to_number(space_rent) - to_number(current_rent)) >= RENT_EPSILON


def plan_rent_sync(rent_records: list, properties: dict, property_errors: dict | None = None) -> SyncReport:
    """
    Compares each active rent record's stored rent against its space's rent.

    `properties` maps property id -> property document (missing ids are absent).
    `property_errors` maps property id -> error message for properties that could
    not be fetched; those records are reported as errors and the rest continue.
    Nothing is written here; the returned report lists the updates to stage.
    """
    property_errors = property_errors or {}
    report = SyncReport(total=len(rent_records))

    for rent in rent_records:
        rent_id = rent.get('id')
        property_id = rent.get('propertyId')
        space_id = rent.get('spaceId')
        tenant_name = rent.get('tenantName') or 'Unknown'
        current_rent = rent.get('monthlyRent')

        if not space_id:
            log.warning(f"  - {tenant_name} ({rent_id}): no spaceId, skipping")
            report.skipped.append({'rent_id': rent_id, 'reason': SKIP_NO_SPACE_ID})
            continue

        if property_id in property_errors:
            log.error(f"  - {tenant_name} ({rent_id}): could not load property {property_id}: {property_errors[property_id]}")
            report.errors.append({'rent_id': rent_id, 'error': property_errors[property_id]})
            continue

        property_doc = properties.get(property_id)
        if not property_doc:
            log.warning(f"  - {tenant_name} ({rent_id}): property {property_id} not found, skipping")
            report.skipped.append({'rent_id': rent_id, 'reason': SKIP_NO_PROPERTY})
            continue

        try:
            space_ref = resolve_space(property_doc, space_id)
        except DuplicateSpaceIdError as e:
            log.warning(f"  - {tenant_name} ({rent_id}): {e.message}, skipping")
            report.duplicate_space_ids.setdefault(property_id, find_duplicate_space_ids(property_doc))
            report.skipped.append({'rent_id': rent_id, 'reason': SKIP_DUPLICATE_SPACE})
            continue

        if space_ref is None:
            log.warning(f"  - {tenant_name} ({rent_id}): space {space_id} not found in property {property_id}, skipping")
            report.skipped.append({'rent_id': rent_id, 'reason': SKIP_NO_SPACE})
            continue

        space_rent = rent_of(space_ref)
        if space_rent is None:
            log.warning(f"  - {tenant_name} ({rent_id}): space {space_id} has no rent set, skipping")
            report.skipped.append({'rent_id': rent_id, 'reason': SKIP_NO_SPACE_RENT})
            continue

        new_rent = to_number(space_rent, default=None)
        if new_rent is None:
            log.warning(f"  - {tenant_name} ({rent_id}): space {space_id} has a non-numeric rent {space_rent!r}, skipping")
            report.skipped.append({'rent_id': rent_id, 'reason': SKIP_INVALID_SPACE_RENT, 'value': space_rent})
            continue

        if not rents_differ(new_rent, current_rent):
            log.info(f"  - {tenant_name} ({rent_id}): already in sync at {new_rent}")
            report.unchanged.append(rent_id)
            continue

        log.info(f"  - {tenant_name} ({rent_id}): will update {current_rent or 0} -> {new_rent}")
        report.updated.append(RentUpdate(
            rent_id=rent_id,
            tenant_name=rent.get('tenantName'),
            property_name=property_doc.get('name'),
            space_name=name_of(space_ref),
            old_rent=current_rent,
            new_rent=new_rent,
        ))

    return report
