"""Schema registry and validator gating every record that crosses the process boundary.

Schemas are keyed by record kind.  Each kind maps to a pydantic model
whose JSON Schema (``json_schema()``) is the declarative document that
describes the expected shape.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ValidationError

from .errors import SerializationError
from .models import LocalPublicCollection, Memo, RemoteCollection

logger = logging.getLogger(__name__)

COLLECTION_SCHEMA = "collection"
REMOTE_COLLECTION_SCHEMA = "remote_collection"
MEMO_SCHEMA = "memo"

DEFAULT_SCHEMAS: dict[str, type[BaseModel]] = {
    COLLECTION_SCHEMA: LocalPublicCollection,
    REMOTE_COLLECTION_SCHEMA: RemoteCollection,
    MEMO_SCHEMA: Memo,
}


class SchemaValidator:
    """Validate raw objects against named schemas.

    Args:
        schemas: Mapping of schema name to pydantic model class.  The
            registry is checked once here; defaults to
            ``DEFAULT_SCHEMAS``.

    Raises:
        TypeError: If a registry entry is not a pydantic model class.
    """

    def __init__(
        self, schemas: Mapping[str, type[BaseModel]] | None = None
    ) -> None:
        registry = dict(schemas if schemas is not None else DEFAULT_SCHEMAS)
        for name, model in registry.items():
            if not (
                isinstance(model, type) and issubclass(model, BaseModel)
            ):
                raise TypeError(
                    f"Schema '{name}' must be a pydantic model class, "
                    f"got {model!r}"
                )
        self._schemas = registry

    def schema_names(self) -> list[str]:
        """Return the registered schema names, sorted."""
        return sorted(self._schemas)

    def json_schema(self, schema_name: str) -> dict[str, Any]:
        """Return the declarative JSON Schema document for *schema_name*."""
        return self._model(schema_name).model_json_schema()

    def validate_object(self, schema_name: str, obj: Any) -> Any:
        """Validate *obj* against the schema named *schema_name*.

        Args:
            schema_name: Registered schema name, e.g. ``"memo"``.
            obj: Raw object (dict) or an already-built record.

        Returns:
            The validated, typed record.

        Raises:
            KeyError: If *schema_name* is not registered.
            SerializationError: If *obj* does not conform.  The pydantic
                ``ValidationError`` is kept as ``origin``.
        """
        model = self._model(schema_name)
        if isinstance(obj, BaseModel):
            obj = obj.model_dump()
        try:
            return model.model_validate(obj)
        except ValidationError as exc:
            record_id = _record_id(obj)
            logger.debug(
                "Schema '%s' rejected record %s: %s",
                schema_name,
                record_id,
                exc,
            )
            raise SerializationError(
                f"Object does not match schema '{schema_name}'"
                + (f" (id={record_id})" if record_id else "")
                + f": {exc.error_count()} validation error(s)",
                record_id=record_id,
                origin=exc,
            ) from exc

    def _model(self, schema_name: str) -> type[BaseModel]:
        try:
            return self._schemas[schema_name]
        except KeyError:
            raise KeyError(f"Unknown schema: {schema_name}") from None


def _record_id(obj: Any) -> str | None:
    if isinstance(obj, Mapping):
        value = obj.get("id")
        if isinstance(value, str):
            return value
    return None
