from __future__ import annotations
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Type, TypeVar
from pydantic import BaseModel, ValidationError as PydanticValidationError
from .errors import ValidationFailed

M = TypeVar("M", bound=BaseModel)

# A check inspects the raw payload and yields (field, message) pairs
Check = Callable[[Mapping[str, Any]], Iterable[Tuple[str, str]]]

def _humanize(field: str, err: Dict[str, Any]) -> str:
    label = field.replace("_", " ")
    kind = err.get("type", "")
    ctx = err.get("ctx") or {}
    if kind == "missing":
        return f"The {label} field is required."
    if kind == "string_type":
        return f"The {label} field must be a string."
    if kind == "string_too_short":
        return f"The {label} field must be at least {ctx.get('min_length')} characters."
    if kind == "string_too_long":
        return f"The {label} field must not be greater than {ctx.get('max_length')} characters."
    msg = str(err.get("msg", "is invalid"))
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    if "valid email" in msg:
        return f"The {label} field must be a valid email address."
    return f"The {label} field {msg.rstrip('.')}."

def field_errors(exc: Any, *, strip: Tuple[str, ...] = ()) -> Dict[str, List[str]]:
    """Group pydantic-style errors by field; `strip` drops leading locations such as "body"."""
    errors: Dict[str, List[str]] = {}
    for err in exc.errors():
        loc = tuple(err.get("loc") or ())
        if loc and loc[0] in strip:
            loc = loc[1:]
        field = ".".join(str(part) for part in loc) or "payload"
        errors.setdefault(field, []).append(_humanize(field, err))
    return errors

def validate(model: Type[M], data: Any, *, checks: Iterable[Check] = ()) -> M:
    """
    Validate `data` against `model` and the extra checks, reporting every
    failing field at once as ValidationFailed.
    """
    if not isinstance(data, Mapping):
        raise ValidationFailed({"payload": ["The request body must be a JSON object."]})
    errors: Dict[str, List[str]] = {}
    parsed: Optional[M] = None
    try:
        parsed = model.model_validate(dict(data))
    except PydanticValidationError as exc:
        errors = field_errors(exc)
    for check in checks:
        for field, message in check(data):
            errors.setdefault(field, []).append(message)
    if errors:
        raise ValidationFailed(errors)
    return parsed

# ---------- Reusable checks ----------
def confirmed(field: str) -> Check:
    """`<field>_confirmation` must match `<field>`."""
    def _check(data: Mapping[str, Any]) -> Iterable[Tuple[str, str]]:
        value = data.get(field)
        if value is not None and data.get(f"{field}_confirmation") != value:
            yield field, f"The {field.replace('_', ' ')} field confirmation does not match."
    return _check

def unique(field: str, exists: Callable[[str], bool]) -> Check:
    def _check(data: Mapping[str, Any]) -> Iterable[Tuple[str, str]]:
        value = data.get(field)
        if isinstance(value, str) and value and exists(value):
            yield field, f"The {field.replace('_', ' ')} has already been taken."
    return _check

def one_of(field: str, allowed: Iterable[str]) -> Check:
    allowed = list(allowed)
    def _check(data: Mapping[str, Any]) -> Iterable[Tuple[str, str]]:
        value = data.get(field)
        if isinstance(value, str) and value.strip() and value.strip() not in allowed:
            yield field, f"The selected {field.replace('_', ' ')} is invalid."
    return _check
