from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Wire models: camelCase out, and keys matched case-insensitively on the way in
    (the web client historically sent both `userId` and `UserId`).
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _match_keys_case_insensitively(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        known: dict[str, str] = {}
        for name, field in cls.model_fields.items():
            alias = field.alias or name
            known[alias.lower()] = alias
            known[name.lower()] = alias

        out: dict[str, Any] = {}
        for key, value in data.items():
            if not isinstance(key, str):
                out[key] = value
                continue
            target = known.get(key.lower().replace("_", ""), known.get(key.lower(), key))
            # Exact keys win over case-folded duplicates.
            if target in out and key != target:
                continue
            out[target] = value
        return out
