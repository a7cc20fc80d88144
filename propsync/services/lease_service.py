# propsync/services/lease_service.py

from datetime import date
import logging

from propsync.constants import (
    EXPIRING_SOON_DAYS,
    LEASE_STATUS_ACTIVE,
    LEASE_STATUS_EXPIRED,
    RENT_COLLECTION,
    SPACE_STATUS_OCCUPIED,
)
from propsync.exceptions import NotFoundError
from propsync.logic.lease_logic import (
    build_assignment,
    classify,
    find_leases_expiring_soon,
    find_leases_to_expire,
    merge_lease_edit,
    renew,
)
from propsync.logic.space_logic import resolve_space
from propsync.services.batch_service import BatchWriter
from propsync.services.db_service import (
    create_rent,
    document_ref,
    get_active_rent_records,
    get_collection_for_organization,
    get_document,
    get_property,
    get_rent_for_properties,
    update_rent,
)
from propsync.utils.speculative import ViewCache, speculative_update

log = logging.getLogger(__name__)


class LeaseBook:
    """
    Working set of rent records. Renewals and edits are applied to the local copy
    first and reverted if the write to Firestore fails.
    """

    def __init__(self, db, organization_id: str | None = None):
        self.db = db
        self.organization_id = organization_id
        self.cache = ViewCache()

    def load(self) -> int:
        """Loads every rent record of the organization into the cache."""
        if not self.organization_id:
            return 0
        for rent in get_collection_for_organization(self.db, RENT_COLLECTION, self.organization_id):
            self.cache.put(rent['id'], rent)
        log.info(f"Loaded {len(self.cache)} rent records for organization {self.organization_id}")
        return len(self.cache)

    def get(self, rent_id: str) -> dict:
        """Cached rent record, refetched when missing or stale."""
        if rent_id not in self.cache or self.cache.is_stale(rent_id):
            rent = get_document(self.db, RENT_COLLECTION, rent_id)
            if rent is None:
                raise NotFoundError('Rent record', rent_id)
            self.cache.put(rent_id, rent)
        return self.cache.get(rent_id)

    def status(self, rent_id: str, today=None):
        return classify(today or date.today(), self.get(rent_id).get('leaseEnd'))

    def renew(self, rent_id: str, new_lease_end, today=None) -> dict:
        patch = renew(self.get(rent_id), new_lease_end, today)
        log.info(f"Renewing lease {rent_id} until {patch['leaseEnd']}")
        return speculative_update(self.cache, rent_id, patch, lambda: update_rent(self.db, rent_id, patch))

    def edit(self, rent_id: str, edits: dict) -> dict:
        patch = merge_lease_edit(self.get(rent_id), edits)
        log.info(f"Updating lease {rent_id}: {sorted(edits)}")
        return speculative_update(self.cache, rent_id, patch, lambda: update_rent(self.db, rent_id, patch))

    def assign_space(self, property_id: str, space_id: str, form: dict) -> dict:
        """
        Creates the lease for a vacant space and marks the space occupied.
        Both are written in one transaction. Raises NotFoundError for an unknown
        property or space and ValidationError when the space is not vacant, already
        has an active lease, or the form is incomplete.
        """
        property_doc = get_property(self.db, property_id)
        if property_doc is None:
            raise NotFoundError('Property', property_id)
        space_ref = resolve_space(property_doc, space_id)
        if space_ref is None:
            raise NotFoundError('Space', space_id)

        assigned = [
            rent.get('spaceId')
            for rent in get_rent_for_properties(self.db, [property_id])
            if rent.get('status') == LEASE_STATUS_ACTIVE
        ]
        data = build_assignment(property_id, space_ref, form, assigned)
        data['organizationId'] = property_doc.get('organizationId')

        rent = create_rent(self.db, data, space_update={
            'floor_index': space_ref.floor_index,
            'space_index': space_ref.space_index,
            'field_patch': {'status': SPACE_STATUS_OCCUPIED},
            'expected_space_id': space_id,
        })
        self.cache.put(rent['id'], rent)
        log.info(f"Assigned {data['tenantName']} to {data['spaceName'] or space_id} in property {property_id}")
        return rent


def expire_leases(db, organization_id: str | None = None, dry_run: bool = False, today=None,
                  window_days: int = EXPIRING_SOON_DAYS) -> dict:
    """
    Moves active leases whose end date has passed to 'expired' and lists those
    ending within the next `window_days` days.
    """
    today = today or date.today()
    rent_records = get_active_rent_records(db, organization_id)
    to_expire = find_leases_to_expire(rent_records, today)
    expiring_soon = find_leases_expiring_soon(rent_records, today, window_days)

    for rent, status in expiring_soon:
        log.info(f"  - {rent.get('tenantName') or rent['id']}: {status.label}, lease ends in {status.days_until_expiry} days")

    result = {
        'checked': len(rent_records),
        'expired': [rent['id'] for rent in to_expire],
        'expiringSoon': [rent['id'] for rent, _ in expiring_soon],
        'failed': [],
    }
    if not to_expire:
        log.info("No leases to expire.")
        return result
    if dry_run:
        log.info(f"Dry run: {len(to_expire)} lease(s) would be marked expired")
        return result

    with BatchWriter(db) as writer:
        for rent in to_expire:
            log.warning(f"  - {rent.get('tenantName') or rent['id']}: lease ended {rent.get('leaseEnd')}, marking expired")
            writer.update(document_ref(db, RENT_COLLECTION, rent['id']), {'status': LEASE_STATUS_EXPIRED}, record_id=rent['id'])

    result['expired'] = writer.committed
    result['failed'] = writer.failed
    return result
