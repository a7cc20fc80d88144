from dataclasses import dataclass
from datetime import date
import logging

from dateutil.relativedelta import relativedelta

from propsync.constants import (
    DEFAULT_RENEWAL_MONTHS,
    EXPIRING_SOON_DAYS,
    LEASE_PERIOD_CUSTOM,
    LEASE_PERIOD_MONTHLY,
    LEASE_PERIOD_YEARLY,
    LEASE_STATUS_ACTIVE,
    SPACE_STATUS_VACANT,
)
from propsync.exceptions import ValidationError
from propsync.logic.space_logic import SpaceRef, id_of, name_of
from propsync.utils.date_utils import format_date, to_date
from propsync.utils.number_utils import to_number

# Set up a module-level logger
log = logging.getLogger(__name__)

LEASE_PERIOD_TYPES = (LEASE_PERIOD_MONTHLY, LEASE_PERIOD_YEARLY, LEASE_PERIOD_CUSTOM)

# Fields that must be stored as numbers, with the value used when missing
NUMERIC_DEFAULTS = {
    'monthlyRent': 0,
    'baseRent': 0,
    'utilitiesAmount': 0,
    'deposit': 0,
    'securityDeposit': 0,
    'paymentDueDate': 1,
    'rentEscalation': 0,
    'leaseDurationMonths': 12,
}


@dataclass(frozen=True)
class LeaseStatus:
    is_expired: bool
    is_expiring_soon: bool
    days_until_expiry: int | None

    @property
    def label(self) -> str:
        if self.is_expired:
            return 'Expired'
        if self.is_expiring_soon:
            return 'Expiring Soon'
        return 'Active'


def compute_lease_end(start, period_type: str, duration_months=None, custom_end=None) -> date | None:
    """
    Computes the lease end date.

    monthly: start + duration_months months.
    yearly:  start + (duration_months // 12) years, then + (duration_months % 12) months.
    custom:  `custom_end` as given (None means open-ended); duration is ignored.

    Month overflow clamps to the last day of the target month,
    e.g. 2025-01-31 + 1 month = 2025-02-28.
    """
    if period_type not in LEASE_PERIOD_TYPES:
        raise ValidationError(f"must be one of {', '.join(LEASE_PERIOD_TYPES)}", field='leasePeriodType', value=period_type)

    if period_type == LEASE_PERIOD_CUSTOM:
        return to_date(custom_end)

    start_date = to_date(start)
    if start_date is None:
        raise ValidationError("lease start date is required", field='leaseStart')

    try:
        months = int(duration_months)
    except (TypeError, ValueError):
        raise ValidationError("duration must be a whole number of months", field='leaseDuration', value=duration_months)
    if months < 0:
        raise ValidationError("duration cannot be negative", field='leaseDuration', value=duration_months)

    if period_type == LEASE_PERIOD_MONTHLY:
        return start_date + relativedelta(months=months)

    end = start_date + relativedelta(years=months // 12)
    return end + relativedelta(months=months % 12)


def classify(today, lease_end) -> LeaseStatus:
    """
    Derives the display state of a lease. A lease without an end date is open-ended
    and never expires.
    """
    end_date = to_date(lease_end)
    if end_date is None:
        return LeaseStatus(is_expired=False, is_expiring_soon=False, days_until_expiry=None)

    days = (end_date - to_date(today)).days
    return LeaseStatus(
        is_expired=days < 0,
        is_expiring_soon=0 < days <= EXPIRING_SOON_DAYS,
        days_until_expiry=days,
    )


def default_renewal_end(rent_record: dict, months: int = DEFAULT_RENEWAL_MONTHS, today=None) -> date:
    """
    Suggested end date for a renewal: `months` after the old end date when the lease
    has already expired, otherwise `months` after today.
    """
    today = to_date(today) or date.today()
    lease_end = to_date(rent_record.get('leaseEnd'))
    base = lease_end if lease_end and lease_end < today else today
    return base + relativedelta(months=months)


def _coerce_numbers(data: dict) -> dict:
    coerced = dict(data)
    for key, default in NUMERIC_DEFAULTS.items():
        coerced[key] = to_number(data.get(key), default)
    if not to_number(data.get('baseRent')):
        coerced['baseRent'] = to_number(data.get('monthlyRent'))
    return coerced


def _validate_due_day(value):
    if not 1 <= value <= 31:
        raise ValidationError("must be a day of the month between 1 and 31", field='paymentDueDate', value=value)


def _validate_duration(value):
    if value < 1:
        raise ValidationError("must be at least one month", field='leaseDurationMonths', value=value)


def renew(rent_record: dict, new_lease_end, today=None) -> dict:
    """
    Builds the update that renews a lease until `new_lease_end`.
    The new end must be strictly after today. The lease is reactivated whatever its
    previous status; every other field is carried over with numeric fields coerced.
    """
    today = to_date(today) or date.today()
    new_end = to_date(new_lease_end)
    if new_end is None:
        raise ValidationError("a new lease end date is required", field='leaseEnd')
    if new_end <= today:
        raise ValidationError("new lease end date must be in the future", field='leaseEnd', value=format_date(new_end))

    lease_start = to_date(rent_record.get('leaseStart')) or today
    patch = {
        'propertyId': rent_record.get('propertyId'),
        'spaceId': rent_record.get('spaceId') or '',
        'spaceName': rent_record.get('spaceName') or '',
        'tenantName': rent_record.get('tenantName'),
        'tenantEmail': rent_record.get('email') or rent_record.get('tenantEmail') or '',
        'tenantPhone': rent_record.get('phone') or rent_record.get('tenantPhone') or '',
        'nationalId': rent_record.get('nationalId') or '',
        'emergencyContact': rent_record.get('emergencyContact') or '',
        'agreementType': rent_record.get('agreementType') or 'standard',
        'notes': rent_record.get('notes') or '',
    }
    for key in NUMERIC_DEFAULTS:
        patch[key] = rent_record.get(key)
    patch = _coerce_numbers(patch)
    patch.update({
        'leaseStart': format_date(lease_start),
        'leaseEnd': format_date(new_end),
        'status': LEASE_STATUS_ACTIVE,
    })
    return patch


def merge_lease_edit(rent_record: dict, edits: dict) -> dict:
    """
    Merges a partial lease edit over the existing record's identifying and numeric
    fields. `leaseDuration` from the edit form is accepted as an alias of
    leaseDurationMonths.
    """
    merged = {
        'propertyId': rent_record.get('propertyId'),
        'spaceId': rent_record.get('spaceId') or '',
        'spaceName': rent_record.get('spaceName') or '',
    }
    merged.update({key: rent_record[key] for key in NUMERIC_DEFAULTS if key in rent_record})
    merged.update(edits)
    if 'leaseDuration' in merged:
        duration = merged.pop('leaseDuration')
        if duration not in (None, ''):
            merged['leaseDurationMonths'] = duration

    merged = _coerce_numbers(merged)
    _validate_due_day(merged['paymentDueDate'])
    if 'leaseDurationMonths' in edits or 'leaseDuration' in edits:
        _validate_duration(merged['leaseDurationMonths'])

    start = to_date(merged.get('leaseStart', rent_record.get('leaseStart')))
    end = to_date(merged.get('leaseEnd', rent_record.get('leaseEnd')))
    if start and end and end <= start:
        raise ValidationError("lease end date must be after start date", field='leaseEnd', value=format_date(end))
    for key in ('leaseStart', 'leaseEnd'):
        if key in merged:
            merged[key] = format_date(to_date(merged[key]))
    return merged


def build_assignment(property_id: str, space_ref: SpaceRef, form: dict, assigned_space_ids=()) -> dict:
    """
    Builds the rent record created when a vacant space is assigned a tenant.
    A space with no status counts as vacant.
    Tenant name, phone and lease start are required. Utilities, when included,
    are folded into monthlyRent while baseRent keeps the bare rent.
    """
    space_id = id_of(space_ref)
    if space_id in set(assigned_space_ids):
        raise ValidationError("space already has an active lease", field='spaceId', value=space_id)
    space_status = space_ref.space.get('status')
    if space_status and space_status != SPACE_STATUS_VACANT:
        raise ValidationError(f"space is {space_status}, not vacant", field='status', value=space_status)

    for required in ('tenantName', 'tenantPhone', 'leaseStart'):
        if not form.get(required):
            raise ValidationError("is required", field=required)

    period_type = form.get('leasePeriodType') or LEASE_PERIOD_YEARLY
    duration = to_number(form.get('leaseDuration'), NUMERIC_DEFAULTS['leaseDurationMonths'])
    start = to_date(form['leaseStart'])
    end = compute_lease_end(start, period_type, duration, custom_end=form.get('leaseEnd'))
    if end is not None and end <= start:
        raise ValidationError("lease end date must be after start date", field='leaseEnd', value=format_date(end))

    base_rent = to_number(form.get('monthlyRent'))
    utilities = to_number(form.get('utilitiesAmount')) if form.get('includeUtilities') else 0
    payment_due_date = to_number(form.get('paymentDueDate'), NUMERIC_DEFAULTS['paymentDueDate'])
    _validate_due_day(payment_due_date)

    return {
        'propertyId': property_id,
        'spaceId': space_id,
        'spaceName': name_of(space_ref),
        'tenantName': form['tenantName'],
        'tenantEmail': form.get('tenantEmail') or '',
        'tenantPhone': form['tenantPhone'],
        'nationalId': form.get('nationalId') or '',
        'emergencyContact': form.get('emergencyContact') or '',
        'monthlyRent': base_rent + utilities,
        'baseRent': base_rent,
        'utilitiesAmount': utilities,
        'leaseStart': format_date(start),
        'leaseEnd': format_date(end),
        'leaseDurationMonths': duration,
        'deposit': to_number(form.get('deposit')),
        'securityDeposit': to_number(form.get('securityDeposit')),
        'paymentDueDate': payment_due_date,
        'rentEscalation': to_number(form.get('rentEscalation')),
        'status': LEASE_STATUS_ACTIVE,
        'agreementType': form.get('agreementType') or 'standard',
        'notes': form.get('notes') or '',
    }


def find_leases_to_expire(rent_records: list, today=None) -> list:
    """Active rent records whose end date is before today."""
    today = to_date(today) or date.today()
    to_expire = []
    for rent in rent_records:
        if rent.get('status') != LEASE_STATUS_ACTIVE:
            continue
        try:
            status = classify(today, rent.get('leaseEnd'))
        except (ValueError, TypeError):
            log.warning(f"Could not read leaseEnd for rent record {rent.get('id')}, skipping")
            continue
        if status.is_expired:
            to_expire.append(rent)
    return to_expire


def find_leases_expiring_soon(rent_records: list, today=None, window_days: int = EXPIRING_SOON_DAYS) -> list:
    """(rent, LeaseStatus) pairs for active leases ending within the next `window_days` days."""
    today = to_date(today) or date.today()
    expiring = []
    for rent in rent_records:
        if rent.get('status') != LEASE_STATUS_ACTIVE:
            continue
        try:
            status = classify(today, rent.get('leaseEnd'))
        except (ValueError, TypeError):
            continue
        if status.days_until_expiry is not None and 0 < status.days_until_expiry <= window_days:
            expiring.append((rent, status))
    return expiring
