"""
Base model for wire types.
The API speaks camelCase JSON; attributes are snake_case.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, PrivateAttr
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for every model exchanged with the Silicon Friends API."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    _source: Optional[Dict[str, Any]] = PrivateAttr(default=None)

    @classmethod
    def from_wire(cls, data: Any):
        """Validate a wire payload and keep the untouched dict alongside the model."""
        obj = cls.model_validate(data)
        if isinstance(data, dict):
            obj._source = data
        return obj

    @property
    def source_payload(self) -> Dict[str, Any]:
        """The payload this model was built from, or its wire form."""
        return self._source if self._source is not None else self.to_wire()

    def to_wire(self) -> Dict[str, Any]:
        """Serialize to a camelCase JSON-compatible dict, dropping unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
