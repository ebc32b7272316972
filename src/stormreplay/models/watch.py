"""SPC tornado / severe thunderstorm watch polygon."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import AliasChoices, Field, field_validator

from stormreplay.models._base import FeatureModel, parse_utc_ms


def parse_spc_timestamp(value: Any) -> int:
    """Parse SPC ``YYYYMMDDHHmm`` (or ISO-8601) into UTC ms."""
    text = str(value).strip()
    if len(text) == 12 and text.isdigit():
        dt = datetime.strptime(text, "%Y%m%d%H%M").replace(tzinfo=UTC)
        return int(dt.timestamp() * 1000)
    parsed = parse_utc_ms(text)
    if parsed is None:
        raise ValueError(f"unparseable SPC timestamp {value!r}")
    return parsed


class SpcWatch(FeatureModel):
    id: str
    type: Literal["TOR", "SVR"] = Field(validation_alias=AliasChoices("TYPE", "type"))
    num: int = Field(validation_alias=AliasChoices("NUM", "num"))
    issue: int = Field(validation_alias=AliasChoices("ISSUE", "issue"))
    expire: int = Field(validation_alias=AliasChoices("EXPIRE", "expire"))
    is_pds: bool = Field(default=False, validation_alias=AliasChoices("IS_PDS", "is_pds"))

    @classmethod
    def _prepare(cls, merged: dict[str, Any], feature: dict[str, Any]) -> None:
        num = merged.get("NUM", merged.get("num"))
        if isinstance(num, str) and num.strip().isdigit():
            num = int(num)
        merged["id"] = f"{merged.get('TYPE', merged.get('type'))}-{num}"

    @field_validator("issue", "expire", mode="before")
    @classmethod
    def _coerce_spc_time(cls, value: Any) -> int:
        if isinstance(value, int) and not isinstance(value, bool) and value > 10**12:
            return value
        return parse_spc_timestamp(value)

    @field_validator("is_pds", mode="before")
    @classmethod
    def _coerce_pds(cls, value: Any) -> bool:
        return value is True or value == 1 or str(value).strip().lower() == "true"
