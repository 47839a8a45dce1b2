from __future__ import annotations

from functools import lru_cache
from typing import Any, Optional, Type, TypeVar, Union

from pydantic import PydanticUserError, TypeAdapter, ValidationError

from restgate.client.response import HttpResponse
from restgate.errors import EntityDecodeError

T = TypeVar("T")


@lru_cache(maxsize=256)
def _adapter(shape: Any) -> TypeAdapter:
    return TypeAdapter(shape)


class EntityReader:
    """Decode response bodies into Python shapes.

    Supported shapes
    - bytes: raw body
    - str: body decoded with the response charset (utf-8 by default)
    - anything pydantic can validate from JSON: models, dataclasses,
      TypedDicts, and parameterized shapes such as List[Item] or Dict[str, int]

    Security notes:
    - The body is untrusted; validation is strict JSON parsing by pydantic.
    """

    def read(self, response: HttpResponse, entity_type: Union[Type[T], Any]) -> Optional[T]:
        """Decode ``response`` into ``entity_type``.

        Raises
        - EntityDecodeError: body is not valid for the shape.
        - TransportError: the body could not be read.
        """

        body = response.read()
        if entity_type is bytes:
            return body  # type: ignore[return-value]
        if entity_type is str:
            try:
                return body.decode(response.charset)  # type: ignore[return-value]
            except (LookupError, UnicodeDecodeError) as e:
                raise EntityDecodeError(
                    f"cannot decode body as {response.charset}: {e}", status=response.status
                ) from e

        adapter = _adapter_for(entity_type, response.status)
        try:
            return adapter.validate_json(body)
        except ValidationError as e:
            raise EntityDecodeError(
                f"cannot decode body as {_shape_name(entity_type)}: {e.error_count()} error(s)",
                status=response.status,
            ) from e


def _shape_name(shape: Any) -> str:
    return getattr(shape, "__name__", None) or repr(shape)


def _adapter_for(shape: Any, status: int) -> TypeAdapter:
    try:
        try:
            return _adapter(shape)
        except TypeError:
            # unhashable shape: skip the cache
            return TypeAdapter(shape)
    except PydanticUserError as e:
        raise EntityDecodeError(
            f"cannot decode body as {_shape_name(shape)}: unsupported shape", status=status
        ) from e
