"""Request body helpers for routes that accept either form posts or JSON."""
from typing import TypeVar

from fastapi import Request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from bookwyrm.errors import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


async def read_payload(request: Request) -> dict:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError as exc:
            raise ValidationError("Malformed JSON body") from exc
        if not isinstance(body, dict):
            raise ValidationError("Expected a JSON object")
        return body

    form = await request.form()
    return {key: value for key, value in form.items() if isinstance(value, str)}


def parse_model(model: type[ModelT], payload: dict) -> ModelT:
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError(describe_validation_error(exc.errors())) from exc


def describe_validation_error(errors) -> str:
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


def require_id(payload: dict) -> str:
    record_id = payload.get("id")
    if not isinstance(record_id, str) or not record_id.strip():
        raise ValidationError("ID is required")
    return record_id.strip()
