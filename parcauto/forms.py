"""
Parsing of submitted form and query-string values.

Optional numbers follow one rule everywhere (car forms and search filters):

* missing, empty or whitespace-only -> ``None``
* not a finite number -> ``None``
* an integer outside SQLite's signed 64-bit range -> ``None``
* otherwise the number, including ``0``

Integer fields accept integral decimals ("2015.0") and reject fractional ones.
"""

import math

CAR_TEXT_FIELDS = ("title", "description", "brand", "model", "fuel_type", "transmission")
CAR_REAL_FIELDS = ("price",)
CAR_INT_FIELDS = ("year", "mileage")

SQLITE_INT_MIN = -(2 ** 63)
SQLITE_INT_MAX = 2 ** 63 - 1


def fits_sqlite_int(value):
    return SQLITE_INT_MIN <= value <= SQLITE_INT_MAX


def parse_optional_text(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def parse_optional_number(value, integer=False):
    text = parse_optional_text(value)
    if text is None:
        return None
    if integer:
        try:
            number = int(text)
        except ValueError:
            number = None
        if number is not None:
            return number if fits_sqlite_int(number) else None
    try:
        number = float(text)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    if integer:
        if not number.is_integer():
            return None
        number = int(number)
        return number if fits_sqlite_int(number) else None
    return number


def car_fields_from_form(form):
    """Build the column mapping for a car from a submitted admin form."""
    fields = {name: parse_optional_text(form.get(name)) for name in CAR_TEXT_FIELDS}
    for name in CAR_REAL_FIELDS:
        fields[name] = parse_optional_number(form.get(name))
    for name in CAR_INT_FIELDS:
        fields[name] = parse_optional_number(form.get(name), integer=True)
    return fields


def parse_id_list(raw):
    """Parse ``"2,5,9"`` into ``[2, 5, 9]``, dropping blanks, junk and zero."""
    ids = []
    for part in (raw or "").split(","):
        value = parse_optional_number(part, integer=True)
        if value and value > 0 and value not in ids:
            ids.append(value)
    return ids
