"""JSON implementation of the Serializer interface.

Encodes dataclasses (and lists of them) with ``dataclasses.asdict`` and
decodes them back through the target class's ``from_dict`` constructor.
"""

import dataclasses
import json
import logging
import typing
from typing import Any

from pocketcache.domain.interfaces.serializer import SerializationError, Serializer

logger = logging.getLogger(__name__)


def _to_plain(obj: Any) -> Any:
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    if isinstance(obj, (list, tuple)):
        return [_to_plain(item) for item in obj]
    return obj


class JsonSerializer(Serializer):
    """Structured-text codec for cache payloads."""

    def serialize(self, obj: Any) -> str:
        try:
            return json.dumps(_to_plain(obj), ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Cannot encode {type(obj).__name__}: {e}") from e

    def deserialize(self, payload: str, type_hint: Any) -> Any:
        try:
            data = json.loads(payload)
        except (TypeError, ValueError, RecursionError) as e:
            raise SerializationError(f"Malformed JSON payload: {e}") from e
        return self._build(data, type_hint)

    def _build(self, data: Any, type_hint: Any) -> Any:
        origin = typing.get_origin(type_hint)
        if origin in (list, typing.List):
            if not isinstance(data, list):
                raise SerializationError(f"Expected a JSON array, got {type(data).__name__}")
            (item_hint,) = typing.get_args(type_hint) or (Any,)
            return [self._build(item, item_hint) for item in data]

        if type_hint is Any:
            return data

        from_dict = getattr(type_hint, "from_dict", None)
        try:
            if from_dict is not None:
                return from_dict(data)
            if dataclasses.is_dataclass(type_hint):
                return type_hint(**data)
            if isinstance(data, type_hint):
                return data
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            raise SerializationError(f"Payload does not match {getattr(type_hint, '__name__', type_hint)}: {e}") from e
        raise SerializationError(f"Payload of type {type(data).__name__} does not match {type_hint!r}")
