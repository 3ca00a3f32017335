"""camelCase output for decode results.

Result models share one ``ConfigDict`` built by ``camel_config`` so
that ``model_dump(by_alias=True)`` yields the consumer-facing key
shape (``displayLabel``, ``columnRoles`` ...).  ``to_camel_case_dict``
is the JSON-ready dump hosts hand to their UI or transport.
"""

from __future__ import annotations

from typing import Any

import pydantic


def snake_to_camel(name: str) -> str:
    """Convert a snake_case field name to camelCase.

    ``"category_label"`` becomes ``"categoryLabel"``; a name without
    underscores is returned unchanged.
    """
    head, *rest = name.split("_")
    return head + "".join(word.capitalize() for word in rest)


def camel_config(*, frozen: bool = False) -> pydantic.ConfigDict:
    """Model config with camelCase aliases that still accepts field names."""
    return pydantic.ConfigDict(alias_generator=snake_to_camel, populate_by_name=True, frozen=frozen)


def to_camel_case_dict(model: pydantic.BaseModel) -> dict[str, Any]:
    """Dump *model* to JSON-compatible data keyed by camelCase aliases."""
    return model.model_dump(mode="json", by_alias=True)
