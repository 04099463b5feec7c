"""Turn raw payloads into pydantic schemas, raising ValidationException on failure."""

from typing import Any, Mapping, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from app.core.exceptions import ValidationException

SchemaType = TypeVar("SchemaType", bound=BaseModel)


def parse_model(schema: Type[SchemaType], data: Union[SchemaType, Mapping[str, Any]]) -> SchemaType:
    """Validate ``data`` against ``schema``; schema instances pass through untouched."""
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        errors = exc.errors()
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()))
        message = first.get("msg", "Validation failed")
        if field:
            message = f"{field}: {message}"
        raise ValidationException(
            message,
            details={"fields": [".".join(str(p) for p in e.get("loc", ())) for e in errors]},
        ) from exc
