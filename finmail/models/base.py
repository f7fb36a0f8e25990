"""
Shared pydantic base for persisted records.

Attributes are snake_case in Python; files and API payloads use the
camelCase aliases so downstream tooling can read them by field name.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_json_dict(self) -> dict:
        """Return a JSON-ready dict keyed by the persisted field names."""
        return self.model_dump(by_alias=True, mode="json")
