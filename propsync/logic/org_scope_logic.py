import logging

from propsync.constants import IN_QUERY_LIMIT

log = logging.getLogger(__name__)

SCOPE_CORRECT = 'correct'
SCOPE_MISSING = 'missing'
SCOPE_WRONG = 'wrong'

def chunked(values: list, size: int = IN_QUERY_LIMIT) -> list:
    """Splits values into consecutive groups of at most `size` (Firestore caps IN clauses at 10)."""
    if size < 1:
        raise ValueError("chunk size must be positive")
    return [values[i:i + size] for i in range(0, len(values), size)]

def classify_scope(rent: dict, organization_id: str) -> str:
    current = rent.get('organizationId')
    if current == organization_id:
        return SCOPE_CORRECT
    if not current:
        return SCOPE_MISSING
    return SCOPE_WRONG

def find_misscoped_rent(rent_records: list, organization_id: str) -> list:
    """
    Returns the rent records whose denormalized organizationId is missing or differs
    from the organization that owns their property. Used by both check and fix so
    the report and the writes cannot drift apart.
    """
    return [rent for rent in rent_records if classify_scope(rent, organization_id) != SCOPE_CORRECT]

def scope_breakdown(rent_records: list, organization_id: str) -> dict:
    """Counts rent records per scope classification."""
    breakdown = {SCOPE_CORRECT: 0, SCOPE_MISSING: 0, SCOPE_WRONG: 0}
    for rent in rent_records:
        breakdown[classify_scope(rent, organization_id)] += 1
    return breakdown
