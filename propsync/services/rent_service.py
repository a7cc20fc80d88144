# propsync/services/rent_service.py

import logging

from propsync.constants import RENT_COLLECTION
from propsync.logic.org_scope_logic import find_misscoped_rent, scope_breakdown
from propsync.logic.rent_sync_logic import plan_rent_sync
from propsync.services.batch_service import BatchWriter
from propsync.services.db_service import (
    document_ref,
    get_active_rent_records,
    get_properties_by_ids,
    get_properties_for_organization,
    get_rent_for_properties,
)

log = logging.getLogger(__name__)

def sync_rent_with_spaces(db, organization_id: str | None = None, dry_run: bool = False) -> dict:
    """
    Brings every active rent record's monthlyRent/baseRent in line with the rent on
    its property's space or squatter entry.
    Returns {'report': SyncReport, 'committed': [...], 'failed': [...]}.
    """
    if organization_id:
        log.info(f"Synchronizing active rent records for organization {organization_id}")
    else:
        log.info("Synchronizing all active rent records")

    rent_records = get_active_rent_records(db, organization_id)
    log.info(f"Found {len(rent_records)} active rent record(s) to check")

    property_ids = sorted({rent['propertyId'] for rent in rent_records if rent.get('propertyId')})
    log.info(f"Fetching {len(property_ids)} propert(y/ies)")
    properties, property_errors = get_properties_by_ids(db, property_ids)

    report = plan_rent_sync(rent_records, properties, property_errors)
    result = {'report': report, 'committed': [], 'failed': []}

    if dry_run or not report.updated:
        if dry_run:
            log.info(f"Dry run: {len(report.updated)} rent record(s) would be updated")
        return result

    with BatchWriter(db) as writer:
        for update in report.updated:
            writer.update(document_ref(db, RENT_COLLECTION, update.rent_id), update.patch, record_id=update.rent_id)

    result['committed'] = writer.committed
    result['failed'] = writer.failed
    for rent_id in writer.failed:
        report.errors.append({'rent_id': rent_id, 'error': 'batch commit failed'})
    log.info(f"Synchronization complete in {writer.commit_count} batch(es): {report.summary()}")
    return result

def _load_org_rent(db, organization_id: str) -> tuple[list, list]:
    properties = get_properties_for_organization(db, organization_id)
    property_ids = [p['id'] for p in properties]
    log.info(f"Found {len(property_ids)} properties for organization {organization_id}")
    rent_records = get_rent_for_properties(db, property_ids) if property_ids else []
    log.info(f"Found {len(rent_records)} rent records for these properties")
    return properties, rent_records

def check_rent_organization(db, organization_id: str) -> dict:
    """
    Reports rent records of the organization's properties whose organizationId is
    missing or wrong. Writes nothing.
    """
    properties, rent_records = _load_org_rent(db, organization_id)
    misscoped = find_misscoped_rent(rent_records, organization_id)
    for rent in misscoped:
        log.warning(f"  - {rent.get('tenantName') or rent['id']}: organizationId is {rent.get('organizationId') or 'MISSING'} (propertyId: {rent.get('propertyId')})")
    return {
        'checked': len(rent_records),
        'fixed': 0,
        'misscoped': misscoped,
        'breakdown': scope_breakdown(rent_records, organization_id),
        'property_count': len(properties),
    }

def fix_rent_organization(db, organization_id: str, dry_run: bool = False) -> dict:
    """
    Sets organizationId on every rent record of the organization's properties where it
    is missing or wrong. Uses the same detection as check_rent_organization.
    """
    result = check_rent_organization(db, organization_id)
    misscoped = result['misscoped']
    if not misscoped:
        log.info("All rent records already have the correct organizationId")
        return result
    if dry_run:
        log.info(f"Dry run: {len(misscoped)} rent record(s) would be updated")
        return result

    with BatchWriter(db) as writer:
        for rent in misscoped:
            log.info(f"  - Will update: {rent.get('tenantName') or rent['id']} (propertyId: {rent.get('propertyId')})")
            writer.update(document_ref(db, RENT_COLLECTION, rent['id']), {'organizationId': organization_id}, record_id=rent['id'])

    result['fixed'] = len(writer.committed)
    result['failed'] = writer.failed
    log.info(f"Updated {result['fixed']} rent records to organizationId {organization_id}")
    return result
