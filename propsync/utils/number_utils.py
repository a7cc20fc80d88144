import math

def to_number(value, default=0):
    """
    Coerces a stored numeric field that may have been saved as a string.
    Missing, blank or unparsable values fall back to `default`; an explicit zero is kept.
    Integral results are returned as int so Firestore keeps integer fields.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    if number.is_integer():
        return int(number)
    return number
