"""Interface for turning domain objects into cache payloads and back."""

import abc
from typing import Any


class SerializationError(Exception):
    """Raised when a payload cannot be encoded or decoded."""


class Serializer(abc.ABC):
    """Abstract Base Class for the structured-text codec used by the cache."""

    @abc.abstractmethod
    def serialize(self, obj: Any) -> str:
        """Encodes a domain object (or a list of them) as text.

        Raises:
            SerializationError: If the object cannot be encoded.
        """
        pass

    @abc.abstractmethod
    def deserialize(self, payload: str, type_hint: Any) -> Any:
        """Decodes ``payload`` into an instance described by ``type_hint``.

        Args:
            payload: Text previously produced by ``serialize``.
            type_hint: A class (e.g. ``Product``) or a ``List[...]`` of one.

        Raises:
            SerializationError: If the payload is malformed or does not match
                the expected schema.
        """
        pass
