# validators.py
from classes.exceptions import InvalidInput
from models.questions import OPTION_LETTERS


def validate_length(field_name, value, max_length):
    if value is not None and len(value) > max_length:
        raise InvalidInput(f"{field_name} must be {max_length} characters or fewer.")


def require_text(field_name, value, max_length=None):
    """Return the stripped string or raise if it is missing or blank."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput(f"{field_name} is required")
    value = value.strip()
    if max_length:
        validate_length(field_name, value, max_length)
    return value


def optional_text(field_name, value, max_length=None):
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidInput(f"{field_name} must be a string")
    value = value.strip()
    if max_length:
        validate_length(field_name, value, max_length)
    return value or None


def validate_int(field_name, value, minimum=None, allow_none=False):
    if value is None:
        if allow_none:
            return None
        raise InvalidInput(f"{field_name} is required")
    # bool is an int subclass, reject it explicitly
    if isinstance(value, bool):
        raise InvalidInput(f"{field_name} must be an integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"{field_name} must be an integer")
    if isinstance(value, float) and value != number:
        raise InvalidInput(f"{field_name} must be an integer")
    if minimum is not None and number < minimum:
        raise InvalidInput(f"{field_name} must be at least {minimum}")
    return number


def validate_option(value, field_name="option"):
    """Normalise an option letter to A-D, None when unanswered."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidInput(f"{field_name} must be one of {', '.join(OPTION_LETTERS)}")
    letter = value.strip().upper()
    if not letter:
        return None
    if letter not in OPTION_LETTERS:
        raise InvalidInput(f"{field_name} must be one of {', '.join(OPTION_LETTERS)}")
    return letter


def validate_choice(field_name, value, choices):
    if value is None or value == "":
        return None
    if value not in choices:
        raise InvalidInput(f"{field_name} must be one of {', '.join(choices)}")
    return value


def validate_phone(value):
    phone = require_text("Phone number", value, max_length=20)
    digits = phone.replace("+", "", 1).replace(" ", "").replace("-", "")
    if not digits.isdigit() or len(digits) < 7:
        raise InvalidInput("Phone number is invalid")
    return phone
