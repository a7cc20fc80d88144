from datetime import date
import logging

from propsync.constants import (
    INVOICE_STATUS_CANCELLED,
    INVOICE_STATUS_OVERDUE,
    INVOICE_STATUS_PAID,
    INVOICE_STATUS_PARTIALLY_PAID,
    INVOICE_STATUS_PENDING,
    PAYMENT_STATUS_COMPLETED,
)
from propsync.utils.date_utils import to_date

# Set up a module-level logger
log = logging.getLogger(__name__)

def is_unlinked_payment(payment: dict) -> bool:
    """A payment whose invoiceId is missing, empty or blank."""
    invoice_id = payment.get('invoiceId')
    return not invoice_id or not str(invoice_id).strip()

def payment_total(payment: dict) -> float:
    return (payment.get('amount') or 0) + (payment.get('lateFee') or 0)

def compute_invoice_state(invoice: dict, payments: list, today=None) -> dict:
    """
    Derives paidAmount, remainingAmount and status of an invoice from its payments.
    Only completed payments linked to the invoice count. remainingAmount is never
    read back from the stored document.
    """
    today = to_date(today) or date.today()
    invoice_id = invoice.get('id')
    amount = invoice.get('amount') or 0

    paid_amount = sum(
        (p.get('amount') or 0)
        for p in payments
        if p.get('invoiceId') == invoice_id and p.get('status') == PAYMENT_STATUS_COMPLETED
    )

    status = invoice.get('status')
    if status != INVOICE_STATUS_CANCELLED:
        due_date = to_date(invoice.get('dueDate'))
        if paid_amount >= amount:
            status = INVOICE_STATUS_PAID
        elif paid_amount > 0:
            status = INVOICE_STATUS_PARTIALLY_PAID
        elif due_date and due_date < today:
            status = INVOICE_STATUS_OVERDUE
        else:
            status = INVOICE_STATUS_PENDING

    return {
        'paidAmount': paid_amount,
        'remainingAmount': amount - paid_amount,
        'status': status,
    }
