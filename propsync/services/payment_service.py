# propsync/services/payment_service.py

import logging

from propsync.constants import PAYMENTS_COLLECTION
from propsync.logic.invoice_logic import compute_invoice_state, is_unlinked_payment, payment_total
from propsync.services.batch_service import BatchWriter
from propsync.services.db_service import (
    document_ref,
    find_invoice_by_number,
    get_all_documents,
    get_payments_for_invoice,
    get_payments_for_rent,
)

log = logging.getLogger(__name__)

def find_unlinked_payments(db) -> dict:
    """Payments with no invoiceId, plus the totals an operator needs before deleting them."""
    payments = get_all_documents(db, PAYMENTS_COLLECTION)
    unlinked = [p for p in payments if is_unlinked_payment(p)]
    return {
        'total': len(payments),
        'unlinked': unlinked,
        'amount': sum(payment_total(p) for p in unlinked),
    }

def delete_payments(db, payments: list) -> dict:
    """Deletes the given payments in batches. Returns {'deleted': n, 'errors': n}."""
    with BatchWriter(db) as writer:
        for payment in payments:
            writer.delete(document_ref(db, PAYMENTS_COLLECTION, payment['id']), record_id=payment['id'])
    for payment_id in writer.failed:
        log.error(f"Error deleting payment {payment_id}")
    return {'deleted': len(writer.committed), 'errors': len(writer.failed)}

def audit_unlinked_payments(db, dry_run: bool = False, confirm: bool = False) -> dict:
    """
    Lists payments without an invoice and deletes them when `confirm` is set and
    this is not a dry run.
    """
    found = find_unlinked_payments(db)
    unlinked = found['unlinked']
    log.info(f"Found {len(unlinked)} of {found['total']} payments without invoiceId (total {found['amount']})")
    for payment in unlinked:
        log.info(f"  - {payment['id']}: {payment.get('tenantName', 'N/A')}, amount {payment.get('amount', 0)}, {payment.get('status', 'N/A')}")

    result = {**found, 'deleted': 0, 'errors': 0}
    if not unlinked:
        return result
    if dry_run or not confirm:
        log.info("No payments deleted (dry run or not confirmed)")
        return result

    result.update(delete_payments(db, unlinked))
    log.info(f"Deleted {result['deleted']} payments, {result['errors']} errors")
    return result

def check_invoice_payments(db, invoice_number: str, today=None) -> dict:
    """
    Diagnostic for one invoice: payments linked to it, unlinked payments of the same
    rent record and property that probably belong to it, and payments that stored
    the invoice number where the invoice id belongs.
    Raises NotFoundError for an unknown invoice number.
    """
    invoice = find_invoice_by_number(db, invoice_number)
    linked = get_payments_for_invoice(db, invoice['id'])
    log.info(f"Invoice {invoice_number} ({invoice['id']}): {len(linked)} linked payment(s)")

    candidates = []
    if not linked and invoice.get('rentId') and invoice.get('propertyId'):
        candidates = [
            p for p in get_payments_for_rent(db, invoice['rentId'], invoice['propertyId'])
            if is_unlinked_payment(p)
        ]
        for payment in candidates:
            log.warning(f"  - Unlinked payment {payment['id']} of {payment.get('amount')} may belong to {invoice_number}")

    mislinked = get_payments_for_invoice(db, invoice_number)
    for payment in mislinked:
        log.warning(f"  - Payment {payment['id']} has invoiceId {invoice_number} (should be {invoice['id']})")

    return {
        'invoice': invoice,
        'state': compute_invoice_state(invoice, linked, today),
        'linked': linked,
        'unlinkedCandidates': candidates,
        'mislinked': mislinked,
    }
