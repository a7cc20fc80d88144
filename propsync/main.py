from firebase_functions import scheduler_fn, https_fn
from firebase_functions.options import set_global_options
import json
import logging
import os
from datetime import date

from propsync.constants import ORGANIZATIONS_COLLECTION
from propsync.exceptions import PropSyncError
from propsync.services.db_service import get_all_documents
from propsync.services.firebase_service import get_firestore_client
from propsync.services.lease_service import expire_leases
from propsync.services.rent_service import fix_rent_organization, sync_rent_with_spaces


# Set up a module-level logger
log = logging.getLogger(__name__)

set_global_options(max_instances=1)


def _dry_run_from_env() -> bool:
    return os.environ.get('RECONCILE_DRY_RUN', 'false').lower() == 'true'


def run_nightly_reconciliation(db, today=None, dry_run: bool = False) -> dict:
    """
    Organization scoping repair, rent sync and lease expiry for every organization.
    Scoping runs first so rent records missing their organizationId are picked up by
    the sync and the sweep. A failing organization is logged and the others still run.
    """
    today = today or date.today()
    window_days = int(os.environ.get('EXPIRING_SOON_DAYS', 30))
    organizations = get_all_documents(db, ORGANIZATIONS_COLLECTION)
    if not organizations:
        log.info("No organizations found in the database. Exiting.")
        return {}

    results = {}
    for organization in organizations:
        org_id = organization['id']
        try:
            scope = fix_rent_organization(db, org_id, dry_run=dry_run)
            sync = sync_rent_with_spaces(db, org_id, dry_run=dry_run)
            expiry = expire_leases(db, org_id, dry_run=dry_run, today=today, window_days=window_days)
        except PropSyncError as e:
            log.error(f"Reconciliation failed for organization {org_id}: {e.message}")
            results[org_id] = {'error': e.message}
            continue
        results[org_id] = {
            'scope': {'misscoped': len(scope['misscoped']), 'fixed': scope['fixed']},
            'rent': sync['report'].summary(),
            'expired': len(expiry['expired']),
            'expiringSoon': len(expiry['expiringSoon']),
        }
        log.info(f"  - Organization {org_id}: {results[org_id]}")
    return results


@scheduler_fn.on_schedule(
    schedule="0 2 * * *",
    timezone=scheduler_fn.Timezone("Africa/Kampala"),
)
def nightly_reconciliation(event: scheduler_fn.ScheduledEvent) -> None:
    """
    Scheduled function that keeps rent amounts and lease statuses consistent
    across all organizations.
    """
    log.info("Starting nightly reconciliation.")
    db = get_firestore_client()
    results = run_nightly_reconciliation(db, dry_run=_dry_run_from_env())
    log.info(f"Nightly reconciliation finished for {len(results)} organizations.")


@https_fn.on_request()
def reconcile_organization(req: https_fn.Request) -> https_fn.Response:
    """
    HTTP-triggered function that repairs organizationId scoping and then syncs rent
    for one organization. Takes organizationId from the query string or JSON body.
    """
    body = req.get_json(silent=True) or {}
    organization_id = req.args.get('organizationId') or body.get('organizationId')
    if not organization_id:
        log.error("Missing organizationId for reconcile_organization.")
        return https_fn.Response("Missing organizationId.", status=400)

    dry_run = str(req.args.get('dryRun', body.get('dryRun', False))).lower() == 'true' or _dry_run_from_env()

    try:
        db = get_firestore_client()
        scope = fix_rent_organization(db, organization_id, dry_run=dry_run)
        sync = sync_rent_with_spaces(db, organization_id, dry_run=dry_run)
    except PropSyncError as e:
        log.error(f"Error reconciling organization {organization_id}: {e.message}")
        return https_fn.Response("An error occurred.", status=500)

    summary = {
        'organizationId': organization_id,
        'dryRun': dry_run,
        'scope': {
            'checked': scope['checked'],
            'misscoped': len(scope['misscoped']),
            'fixed': scope['fixed'],
        },
        'rent': sync['report'].summary(),
    }
    log.info(f"Reconciled organization {organization_id}: {summary}")
    return https_fn.Response(json.dumps(summary), headers={"Content-Type": "application/json"}, status=200)
