# propsync/cli.py

import argparse
import json
import logging
import os
import sys

from propsync.exceptions import NotFoundError, PropSyncError
from propsync.logic.lease_logic import default_renewal_end
from propsync.services.firebase_service import get_firestore_client
from propsync.services.lease_service import LeaseBook, expire_leases
from propsync.services.manager_service import assign_manager_to_properties, check_manager_assignments
from propsync.services.org_service import check_organization_data
from propsync.services.payment_service import audit_unlinked_payments, check_invoice_payments
from propsync.services.rent_service import check_rent_organization, fix_rent_organization, sync_rent_with_spaces
from propsync.services.role_service import update_roles
from propsync.services.seed_service import seed_accounts
from propsync.utils.date_utils import format_date
from propsync.utils.template_renderer import render_report

log = logging.getLogger(__name__)


def cmd_sync_rent(db, args):
    result = sync_rent_with_spaces(db, args.organization_id, dry_run=args.dry_run)
    print(render_report('rent_sync_summary.txt', report=result['report'], dry_run=args.dry_run, failed=result['failed']))
    return 1 if result['report'].errors else 0


def _print_scope(args, result, mode):
    print(render_report(
        'org_scope_summary.txt',
        organization_id=args.organization_id,
        dry_run=getattr(args, 'dry_run', False),
        property_count=result['property_count'],
        result=result,
        breakdown=result['breakdown'],
        mode=mode,
        misscoped=result['misscoped'],
    ))


def cmd_check_rent_org(db, args):
    result = check_rent_organization(db, args.organization_id)
    _print_scope(args, result, 'check')
    return 0


def cmd_fix_rent_org(db, args):
    result = fix_rent_organization(db, args.organization_id, dry_run=args.dry_run)
    _print_scope(args, result, 'fix')
    return 1 if result.get('failed') else 0


def cmd_assign_manager(db, args):
    result = assign_manager_to_properties(db, args.email, args.selected, dry_run=args.dry_run)
    print(render_report(
        'manager_assignment_summary.txt',
        manager=result['manager'], mode='assign', result=result,
        dry_run=args.dry_run, ignored=result['ignored'],
    ))
    return 1 if result.get('failed') else 0


def cmd_check_manager(db, args):
    result = check_manager_assignments(db, args.email)
    print(render_report(
        'manager_assignment_summary.txt',
        manager=result['manager'], mode='check', total=result['total'],
        breakdown=result['breakdown'], accessible=result['accessible'],
    ))
    return 0


def cmd_expire_leases(db, args):
    window_days = int(os.environ.get('EXPIRING_SOON_DAYS', 30))
    result = expire_leases(db, args.organization_id, dry_run=args.dry_run, window_days=window_days)
    print(f"Checked {result['checked']} active leases")
    print(f"Expired: {len(result['expired'])}{' (DRY RUN)' if args.dry_run else ''}")
    print(f"Expiring within {window_days} days: {len(result['expiringSoon'])}")
    if result['failed']:
        print(f"Failed: {', '.join(result['failed'])}")
        return 1
    return 0


def cmd_renew_lease(db, args):
    book = LeaseBook(db)
    new_end = args.new_end or format_date(default_renewal_end(book.get(args.rent_id)))
    rent = book.renew(args.rent_id, new_end)
    print(f"Lease {args.rent_id} renewed: {rent.get('leaseStart')} -> {rent.get('leaseEnd')}")
    return 0


def cmd_assign_space(db, args):
    with open(args.form, encoding='utf-8') as f:
        form = json.load(f)
    rent = LeaseBook(db).assign_space(args.property_id, args.space_id, form)
    print(f"Created rent record {rent['id']} for {rent.get('tenantName')} ({rent.get('leaseStart')} -> {rent.get('leaseEnd')})")
    return 0


def cmd_audit_payments(db, args):
    confirm = args.confirm
    if not args.dry_run and not confirm:
        found = audit_unlinked_payments(db, dry_run=True)
        print(render_report('payment_audit_summary.txt', dry_run=False, deleted=None, errors=0, **_audit_context(found)))
        if not found['unlinked']:
            return 0
        answer = input(f"Delete {len(found['unlinked'])} payments? Type 'yes' to confirm: ")
        if answer.strip().lower() != 'yes':
            print("Cancelled.")
            return 0
        confirm = True
    result = audit_unlinked_payments(db, dry_run=args.dry_run, confirm=confirm)
    print(render_report('payment_audit_summary.txt', dry_run=args.dry_run, deleted=result['deleted'],
                        errors=result['errors'], **_audit_context(result)))
    return 1 if result['errors'] else 0


def _audit_context(result):
    return {'total': result['total'], 'unlinked': result['unlinked'], 'amount': result['amount']}


def cmd_check_invoice(db, args):
    result = check_invoice_payments(db, args.invoice_number)
    invoice, state = result['invoice'], result['state']
    print(f"Invoice {invoice.get('invoiceNumber')} ({invoice['id']})")
    print(f"  Amount:    {invoice.get('amount', 0)}")
    print(f"  Paid:      {state['paidAmount']}")
    print(f"  Remaining: {state['remainingAmount']}")
    print(f"  Status:    {state['status']} (stored: {invoice.get('status')})")
    print(f"  Linked payments: {len(result['linked'])}")
    for payment in result['unlinkedCandidates']:
        print(f"  ! Unlinked payment {payment['id']} ({payment.get('amount', 0)}) may belong to this invoice")
    for payment in result['mislinked']:
        print(f"  ! Payment {payment['id']} stores the invoice number instead of the invoice id")
    return 0


def cmd_check_org(db, args):
    result = check_organization_data(db, args.organization_id)
    if result['organization'] is None:
        print(f"Organization {args.organization_id} not found")
    print(f"Users:      {result['users']}")
    print(f"Properties: {result['properties']}")
    print(f"Payments:   {result['payments']} (total {result['paymentsTotal']})")
    print(f"Rent:       {result['rent']}")
    print(f"Tenants:    {result['tenants']}")
    if result['rentWithoutOrganization']:
        print(f"{result['rentWithoutOrganization']} sampled rent records have no organizationId. "
              f"Run check-rent-org {args.organization_id}.")
    return 0


def cmd_update_roles(db, args):
    result = update_roles(db, dry_run=args.dry_run)
    print(f"Roles checked: {result['checked']}, updated: {result['updated']}"
          f"{' (DRY RUN, ' + str(len(result['planned'])) + ' planned)' if args.dry_run else ''}")
    return 0


def cmd_seed_accounts(db, args):
    result = seed_accounts(db, args.accounts_file)
    print(f"Organizations written: {result['organizations']}")
    print(f"Accounts set up: {len(result['accounts'])}")
    if result['failed']:
        print(f"Failed: {', '.join(str(email) for email in result['failed'])}")
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='propsync', description='Firestore reconciliation for property management data.')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    sub = parser.add_subparsers(dest='command', required=True)

    def add(name, func, help_text, dry_run=True):
        p = sub.add_parser(name, help=help_text)
        if dry_run:
            p.add_argument('--dry-run', action='store_true', help='Report changes without writing')
        p.set_defaults(func=func)
        return p

    p = add('sync-rent', cmd_sync_rent, 'Sync active rent records with their space rent')
    p.add_argument('organization_id', nargs='?')

    p = add('check-rent-org', cmd_check_rent_org, 'Report rent records with a missing or wrong organizationId', dry_run=False)
    p.add_argument('organization_id')

    p = add('fix-rent-org', cmd_fix_rent_org, 'Set organizationId on misscoped rent records')
    p.add_argument('organization_id')

    p = add('assign-manager', cmd_assign_manager, 'Assign a manager to properties in their organization')
    p.add_argument('email')
    p.add_argument('--selected', nargs='+', metavar='PROPERTY_ID', help='Only these properties')

    p = add('check-manager', cmd_check_manager, "Show a user's property assignments", dry_run=False)
    p.add_argument('email')

    p = add('expire-leases', cmd_expire_leases, 'Mark ended leases as expired')
    p.add_argument('organization_id', nargs='?')

    p = add('renew-lease', cmd_renew_lease, 'Renew a lease until a new end date', dry_run=False)
    p.add_argument('rent_id')
    p.add_argument('new_end', nargs='?', help='YYYY-MM-DD, defaults to 12 months on')

    p = add('assign-space', cmd_assign_space, 'Create a lease for a vacant space', dry_run=False)
    p.add_argument('property_id')
    p.add_argument('space_id')
    p.add_argument('form', help='JSON file with tenant and lease fields')

    p = add('audit-payments', cmd_audit_payments, 'Find and delete payments without an invoice')
    p.add_argument('--confirm', action='store_true', help='Delete without prompting')

    p = add('check-invoice', cmd_check_invoice, 'Check the payments of one invoice', dry_run=False)
    p.add_argument('invoice_number')

    p = add('check-org', cmd_check_org, 'Count the data an organization owns', dry_run=False)
    p.add_argument('organization_id')

    add('update-roles', cmd_update_roles, 'Backfill role display names and manager permissions')

    p = add('seed-accounts', cmd_seed_accounts, 'Create organizations and accounts from a JSON file', dry_run=False)
    p.add_argument('accounts_file')

    return parser


def configure_logging(verbose: bool = False):
    level = 'DEBUG' if verbose else os.environ.get('PROPSYNC_LOG_LEVEL', 'INFO').upper()
    logging.basicConfig(level=level, format='%(asctime)s %(levelname)s %(name)s: %(message)s')


def main(argv=None, db=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    db = db or get_firestore_client()
    try:
        return args.func(db, args)
    except NotFoundError as e:
        log.error(e.message)
        return 1
    except PropSyncError as e:
        log.error(f"{type(e).__name__}: {e.message}")
        return 2


if __name__ == '__main__':
    sys.exit(main())
