# propsync/services/org_service.py

import logging

from propsync.constants import (
    PAYMENTS_COLLECTION,
    PROPERTIES_COLLECTION,
    RENT_COLLECTION,
    TENANTS_COLLECTION,
    USERS_COLLECTION,
)
from propsync.services.db_service import get_collection_for_organization, get_documents_sample, get_organization

log = logging.getLogger(__name__)

# How many rent records to sample when none carry the organization id
RENT_SAMPLE_SIZE = 10

def check_organization_data(db, organization_id: str) -> dict:
    """
    Counts what an organization owns, to explain an empty dashboard.
    When no rent record carries the organizationId, samples rent records that have
    none at all (usually the reason).
    """
    organization = get_organization(db, organization_id)
    if organization is None:
        log.warning(f"Organization document {organization_id} does not exist")

    counts = {}
    for collection in (USERS_COLLECTION, PROPERTIES_COLLECTION, PAYMENTS_COLLECTION, RENT_COLLECTION, TENANTS_COLLECTION):
        counts[collection] = get_collection_for_organization(db, collection, organization_id)
        log.info(f"  - {collection}: {len(counts[collection])}")

    rent_without_org = None
    if not counts[RENT_COLLECTION]:
        sample = get_documents_sample(db, RENT_COLLECTION, RENT_SAMPLE_SIZE)
        rent_without_org = sum(1 for rent in sample if not rent.get('organizationId'))
        if rent_without_org:
            log.warning(f"{rent_without_org} of the first {RENT_SAMPLE_SIZE} rent records have no organizationId")

    return {
        'organization': organization,
        'users': len(counts[USERS_COLLECTION]),
        'properties': len(counts[PROPERTIES_COLLECTION]),
        'payments': len(counts[PAYMENTS_COLLECTION]),
        'paymentsTotal': sum((p.get('amount') or 0) for p in counts[PAYMENTS_COLLECTION]),
        'rent': len(counts[RENT_COLLECTION]),
        'tenants': len(counts[TENANTS_COLLECTION]),
        'rentWithoutOrganization': rent_without_org,
    }
