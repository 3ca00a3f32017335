"""Pydantic models for decode output: parsed fields and vendor metadata."""

from __future__ import annotations

from typing import Any

import pydantic

from beacon_decoder.utils import serialization

RoleName = str


class GroupSpec(pydantic.BaseModel):
    """A presentation group: its identifier and display label."""

    model_config = serialization.camel_config(frozen=True)

    key: str
    label: str


class ColumnRoles(pydantic.BaseModel):
    """Which field key supplies each logical column (account, request type)."""

    model_config = serialization.camel_config(frozen=True)

    account: str | None = None
    request_type: str | None = None

    def key_for(self, role: RoleName) -> str | None:
        """Return the field key mapped to *role* (snake or camel case)."""
        if role in ("requestType", "request_type"):
            return self.request_type
        if role == "account":
            return self.account
        return None


class ParsedField(pydantic.BaseModel):
    """One labelled value extracted from a request.

    ``hidden`` fields feed derived roles (e.g. request type)
    and are not meant for direct display.
    """

    model_config = serialization.camel_config()

    key: str
    value: str
    display_label: str | None = None
    group_key: str | None = None
    hidden: bool = False


class VendorInfo(pydantic.BaseModel):
    """Static metadata for the vendor that owns a request."""

    model_config = serialization.camel_config()

    id: str
    name: str
    category: str
    category_label: str
    column_roles: ColumnRoles = pydantic.Field(default_factory=ColumnRoles)
    groups: list[GroupSpec] = pydantic.Field(default_factory=list)


class ParseResult(pydantic.BaseModel):
    """Complete decode of a single request."""

    model_config = serialization.camel_config()

    vendor: VendorInfo
    fields: list[ParsedField] = pydantic.Field(default_factory=list)

    def visible_fields(self) -> list[ParsedField]:
        """Fields meant for display, in decode order."""
        return [f for f in self.fields if not f.hidden]

    def find(self, key: str) -> ParsedField | None:
        """Return the first field with *key*, hidden or not."""
        for f in self.fields:
            if f.key == key:
                return f
        return None

    def role_value(self, role: RoleName) -> str | None:
        """Resolve a column role (``account``, ``requestType``) to its value."""
        key = self.vendor.column_roles.key_for(role)
        if key is None:
            return None
        field = self.find(key)
        return field.value if field is not None else None

    @property
    def account(self) -> str | None:
        """Value of the vendor's account column, if any."""
        return self.role_value("account")

    @property
    def request_type(self) -> str | None:
        """Value of the vendor's request-type column, if any."""
        return self.role_value("requestType")

    def to_payload(self) -> dict[str, Any]:
        """camelCase dict of the result plus its resolved column values."""
        payload = serialization.to_camel_case_dict(self)
        payload["account"] = self.account
        payload["requestType"] = self.request_type
        return payload

    def grouped(self) -> dict[str, list[ParsedField]]:
        """Visible fields bucketed by group, in the vendor's group order.

        Fields whose group is not declared by the vendor land in
        ``"other"``, which always comes last.
        """
        declared = [g.key for g in self.vendor.groups]
        buckets: dict[str, list[ParsedField]] = {key: [] for key in declared}
        buckets.setdefault("other", [])
        for f in self.visible_fields():
            group = f.group_key if f.group_key in buckets else "other"
            buckets[group].append(f)
        other = buckets.pop("other")
        result = {key: fields for key, fields in buckets.items() if fields}
        if other:
            result["other"] = other
        return result
