"""
Request payload validation.

validate() checks a payload against a submission schema and returns a
ValidationResult instead of raising. The validation stages built by
validation_stage() are FastAPI dependencies: they read the request body,
run validate() and stop the request with a 400 AppError when anything is
wrong, so invalid payloads never reach the store.
"""
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Tuple, Type

from fastapi import Request
from pydantic import BaseModel, ValidationError

from errors import AppError
from schemas import CampgroundIn, ReviewIn

# campground[title] -> ("campground", "title")
_BRACKET_KEY = re.compile(r"^([^\[\]]+)\[([^\[\]]+)\]$")

_NUMBER_ERRORS = {"float_parsing", "float_type", "int_parsing", "int_type", "bool_not_number"}


@dataclass
class ValidationResult:
    value: Optional[BaseModel] = None
    violations: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.violations


def _describe(error: dict) -> str:
    kind = error["type"]
    ctx = error.get("ctx") or {}
    if kind == "missing":
        return "is required"
    if kind == "extra_forbidden":
        return "is not allowed"
    if kind == "string_too_short":
        return "is not allowed to be empty"
    if kind == "string_type":
        return "must be a string"
    if kind in _NUMBER_ERRORS:
        return "must be a number"
    if kind == "int_from_float":
        return "must be an integer"
    if kind == "greater_than_equal":
        return f"must be greater than or equal to {ctx['ge']}"
    if kind == "less_than_equal":
        return f"must be less than or equal to {ctx['le']}"
    msg = error["msg"]
    return msg[:1].lower() + msg[1:]


def _violation(label: str, error: dict) -> str:
    path = ".".join([label, *(str(part) for part in error["loc"])])
    return f'"{path}" {_describe(error)}'


def validate(schema: Type[BaseModel], payload: Any, label: str) -> ValidationResult:
    """Validate payload (or payload[label] when present) against schema.

    Keys next to payload[label] are reported as not allowed.
    """
    violations = []
    if isinstance(payload, dict) and label in payload:
        violations = [f'"{key}" is not allowed' for key in payload if key != label]
        payload = payload[label]
    if not isinstance(payload, dict):
        return ValidationResult(violations=[f'"{label}" must be of type object', *violations])
    try:
        value = schema.model_validate(payload)
    except ValidationError as e:
        return ValidationResult(violations=[_violation(label, err) for err in e.errors()] + violations)
    if violations:
        return ValidationResult(violations=violations)
    return ValidationResult(value=value)


def expand_form(items: Iterable[Tuple[str, Any]]) -> dict:
    """Turn bracketed form keys (campground[title]) into nested dicts."""
    data: dict = {}
    for key, value in items:
        match = _BRACKET_KEY.match(key)
        if match is None:
            data[key] = value
            continue
        outer, inner = match.groups()
        if not isinstance(data.get(outer), dict):
            data[outer] = {}
        data[outer][inner] = value
    return data


async def read_payload(request: Request) -> Any:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            return await request.json()
        except ValueError:
            raise AppError("Request body is not valid JSON", 400)
    form = await request.form()
    return expand_form(form.multi_items())


def validation_stage(schema: Type[BaseModel], label: str):
    async def _stage(request: Request):
        result = validate(schema, await read_payload(request), label)
        if not result.ok:
            raise AppError(",".join(result.violations), 400)
        return result.value

    _stage.__name__ = f"validate_{label}"
    return _stage


validate_campground = validation_stage(CampgroundIn, "campground")
validate_review = validation_stage(ReviewIn, "review")
