# expense_core/validators.py
#
# Input parsing shared by the services. Every helper either returns a clean
# Python value or raises errors.ValidationError naming the offending field.

from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from expense_core.errors import ValidationError
from expense_core.models import Category, RecurringTransaction

TYPES = tuple(value for value, _ in Category.TYPE_CHOICES)
FREQUENCIES = tuple(value for value, _ in RecurringTransaction.FREQUENCY_CHOICES)

# amount columns are DecimalField(max_digits=12, decimal_places=2)
AMOUNT_INTEGER_DIGITS = 10


def parse_amount(value, field="amount"):
    if value is None or value == "" or isinstance(value, bool):
        raise ValidationError("Amount is required.", field=field)
    try:
        amount = Decimal(str(value).strip())
        if not amount.is_finite():
            raise ValidationError("Invalid amount format.", field=field)
        amount = amount.quantize(Decimal("0.01"))
    except InvalidOperation:
        raise ValidationError("Invalid amount format.", field=field)
    if amount <= 0:
        raise ValidationError("Amount must be greater than zero.", field=field)
    if amount.adjusted() >= AMOUNT_INTEGER_DIGITS:
        raise ValidationError(
            f"Amount must have at most {AMOUNT_INTEGER_DIGITS} digits before the decimal point.",
            field=field,
        )
    return amount


def parse_text(value, field, max_length, min_length=1):
    if value is None:
        value = ""
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string.", field=field)
    text = value.strip()
    if len(text) < min_length:
        raise ValidationError(f"{field} is required.", field=field)
    if len(text) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters.", field=field)
    return text


def parse_choice(value, choices, field):
    choice = (value or "").strip().upper() if isinstance(value, str) else value
    if choice not in choices:
        raise ValidationError(f"{field} must be one of {', '.join(choices)}.", field=field)
    return choice


def parse_type(value, field="type"):
    return parse_choice(value, TYPES, field)


def parse_frequency(value, field="frequency"):
    return parse_choice(value, FREQUENCIES, field)


def parse_date(value, field="date"):
    # Accept date objects and ISO strings ('YYYY-MM-DD' or a full timestamp)
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Date is required.", field=field)
    raw = value.strip()
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        raise ValidationError("Invalid date format.", field=field)


def parse_optional_date(value, field):
    if value is None or value == "":
        return None
    return parse_date(value, field=field)


def parse_int(value, field, minimum=None, maximum=None, default=None):
    if value is None or value == "":
        if default is None:
            raise ValidationError(f"{field} is required.", field=field)
        return default
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer.", field=field)
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer.", field=field)
    if minimum is not None and number < minimum:
        raise ValidationError(f"{field} must be at least {minimum}.", field=field)
    if maximum is not None and number > maximum:
        raise ValidationError(f"{field} must be at most {maximum}.", field=field)
    return number


def parse_bool(value, field):
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "1", "yes"):
        return True
    if isinstance(value, str) and value.strip().lower() in ("false", "0", "no"):
        return False
    raise ValidationError(f"{field} must be true or false.", field=field)


def reject_unknown_fields(data, allowed):
    unknown = sorted(set(data) - set(allowed))
    if unknown:
        raise ValidationError("Unknown fields: " + ", ".join(unknown), fields=unknown)
