"""The one place where documents cross the service boundary.

Request bodies are produced from option models with `to_wire`, response
documents are turned into models with `from_wire`. Unset fields never reach
the wire, and field names map one-to-one between both sides.
"""

from typing import Any, Dict, Iterable, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from witrium.core.exceptions import RemoteRequestError

M = TypeVar("M", bound=BaseModel)


def to_wire(model: BaseModel, fields: Optional[Iterable[str]] = None) -> Dict[str, Any]:
    """Serialize `model` into a request body, dropping unset/None fields.

    `fields` restricts the body to the fields an endpoint accepts.
    """
    include = set(fields) if fields is not None else None
    return model.model_dump(mode="json", by_alias=True, exclude_none=True, include=include)


def from_wire(model_cls: Type[M], body: Any) -> M:
    """Validate a response document into `model_cls`.

    A document that does not match the expected shape is reported as a
    request failure, since the caller cannot act on it either way.
    """
    try:
        return model_cls.model_validate(body)
    except ValidationError as exc:
        raise RemoteRequestError(
            f"Unexpected {model_cls.__name__} document from service",
            detail=f"unexpected {model_cls.__name__} document: {exc.error_count()} validation error(s)",
        ) from exc
