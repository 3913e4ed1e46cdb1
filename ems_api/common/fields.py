# ems_api/common/fields.py
from ems_api.common.errors import ValidationError


def text(value, field_name="value") -> str:
    """
    Stripped string for a free-text JSON field. None -> "".
    Numbers are accepted and stringified (phones, codes); anything else is a 400.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value).strip()
    raise ValidationError(f"{field_name} must be a string")


def secret(value, field_name="password") -> str:
    """Passwords are taken verbatim and must be strings."""
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")
    return value
