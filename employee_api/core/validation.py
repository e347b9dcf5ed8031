# employee_api/core/validation.py
"""
Declarative request validation.

A rule set is an ordered list of ``Rule(field, predicate, message)`` tuples.
:func:`validate` walks the list in order and raises :class:`BadRequest` with
the message of the first rule that fails. Once a field has failed, its
remaining rules are skipped. Optional rule sets skip rules whose field is
absent from the payload, while a present field must still pass.
"""
import math
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, NamedTuple, Optional

from email_validator import EmailNotValidError, validate_email

from employee_api.core.exceptions import BadRequest


class Rule(NamedTuple):
    field: str
    predicate: Callable[[Any], bool]
    message: str


def is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def min_length(length: int) -> Callable[[Any], bool]:
    def check(value: Any) -> bool:
        return value is not None and len(str(value)) >= length
    return check


def is_email(value: Any) -> bool:
    if not isinstance(value, str) or not value.strip():
        return False
    try:
        validate_email(value.strip(), check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    try:
        number = float(value)
    except (TypeError, ValueError):
        return False
    # rejects inf and nan
    return math.isfinite(number)


def is_non_negative(value: Any) -> bool:
    return is_number(value) and float(value) >= 0


def parse_date(value: Any) -> date:
    """Parse an ISO-8601 calendar date (a full timestamp keeps its date part)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        return datetime.fromisoformat(text).date()


def is_iso_date(value: Any) -> bool:
    try:
        parse_date(value)
    except (TypeError, ValueError):
        return False
    return True


def normalize_email(value: Any) -> str:
    return str(value).strip().lower()


def _text(value: Any) -> str:
    return str(value).strip()


def validate(
    payload: Mapping[str, Any],
    rules: Iterable[Rule],
    normalizers: Optional[Mapping[str, Callable[[Any], Any]]] = None,
    optional: bool = False,
) -> Dict[str, Any]:
    """Check ``payload`` against ``rules`` and return the normalized fields.

    Only fields named by a rule are returned. With ``optional=True`` a field
    missing from the payload is not an error and is left out of the result.
    """
    normalizers = normalizers or {}
    failed = set()
    first_error = None
    fields: List[str] = []

    for rule in rules:
        if rule.field not in fields:
            fields.append(rule.field)
        if rule.field in failed:
            continue
        if optional and rule.field not in payload:
            continue
        if not rule.predicate(payload.get(rule.field)):
            failed.add(rule.field)
            if first_error is None:
                first_error = rule.message

    if first_error is not None:
        raise BadRequest(first_error)

    cleaned = {}
    for field in fields:
        if field not in payload:
            if optional:
                continue
            cleaned[field] = None
            continue
        normalize = normalizers.get(field, _text)
        value = payload[field]
        cleaned[field] = normalize(value) if value is not None else None
    return cleaned


EMPLOYEE_NORMALIZERS = {
    "email": normalize_email,
    "salary": float,
    "date_of_joining": parse_date,
}

EMPLOYEE_RULES = [
    Rule("first_name", is_present, "First name is required"),
    Rule("last_name", is_present, "Last name is required"),
    Rule("email", is_email, "Valid email is required"),
    Rule("position", is_present, "Position is required"),
    Rule("salary", is_present, "Salary is required"),
    Rule("salary", is_number, "Salary must be a number"),
    Rule("salary", is_non_negative, "Salary cannot be negative"),
    Rule("date_of_joining", is_present, "Date of joining is required"),
    Rule("date_of_joining", is_iso_date, "Valid date is required (YYYY-MM-DD)"),
    Rule("department", is_present, "Department is required"),
]

EMPLOYEE_UPDATE_RULES = [
    Rule("first_name", is_present, "First name cannot be empty"),
    Rule("last_name", is_present, "Last name cannot be empty"),
    Rule("email", is_email, "Valid email is required"),
    Rule("position", is_present, "Position cannot be empty"),
    Rule("salary", is_number, "Salary must be a number"),
    Rule("salary", is_non_negative, "Salary cannot be negative"),
    Rule("date_of_joining", is_iso_date, "Valid date is required (YYYY-MM-DD)"),
    Rule("department", is_present, "Department cannot be empty"),
]

SIGNUP_NORMALIZERS = {
    "email": normalize_email,
    # passwords are taken verbatim
    "password": str,
}

SIGNUP_RULES = [
    Rule("username", is_present, "Username is required"),
    Rule("username", min_length(3), "Username must be at least 3 characters long"),
    Rule("email", is_email, "Valid email is required"),
    Rule("password", is_present, "Password is required"),
    Rule("password", min_length(6), "Password must be at least 6 characters long"),
]

LOGIN_NORMALIZERS = {
    "email": _text,
    "password": str,
}

LOGIN_RULES = [
    Rule("email", is_present, "Email or username is required"),
    Rule("password", is_present, "Password is required"),
]
