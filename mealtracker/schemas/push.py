"""Pydantic models for the push subscription API.

Field names follow the browser client, which sends camelCase JSON.
"""
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from mealtracker.core.notifications.texts import Language


class _ClientModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


def _check_quiet_hours(start: Optional[int], end: Optional[int]) -> None:
    if (start is None) != (end is None):
        raise ValueError("Both quietHoursStart and quietHoursEnd must be provided")
    if start is not None and start == end:
        raise ValueError("Quiet hours start and end must be different")


class SubscriptionKeys(BaseModel):
    """Encryption keys generated by the browser's PushManager."""

    p256dh: str = Field(min_length=1)
    auth: str = Field(min_length=1)


class EndpointRequest(_ClientModel):
    endpoint: str = Field(min_length=1)


class SubscribeRequest(EndpointRequest):
    """Registration (or re-registration) of a device."""

    keys: SubscriptionKeys
    last_meal_time: Optional[int] = Field(default=None, ge=0, alias="lastMealTime")
    quiet_hours_start: Optional[int] = Field(default=None, ge=0, le=23, alias="quietHoursStart")
    quiet_hours_end: Optional[int] = Field(default=None, ge=0, le=23, alias="quietHoursEnd")
    language: Language = Language.EN
    target_hours: Optional[int] = Field(default=None, ge=1, le=24, alias="targetHours")

    @model_validator(mode="after")
    def validate_quiet_hours(self) -> "SubscribeRequest":
        _check_quiet_hours(self.quiet_hours_start, self.quiet_hours_end)
        return self

    def to_record(self) -> dict[str, Any]:
        return {
            "endpoint": self.endpoint,
            "keys": self.keys.model_dump_json(),
            "last_meal_time": self.last_meal_time,
            "quiet_hours_start": self.quiet_hours_start,
            "quiet_hours_end": self.quiet_hours_end,
            "language": self.language.value,
            "target_hours": self.target_hours,
        }


class SubscriptionUpdateRequest(EndpointRequest):
    """Partial update of meal time and notification preferences.

    Only fields present in the request body are changed. Quiet hours must be
    sent as a pair; sending both as ``null`` turns them off.
    """

    last_meal_time: Optional[int] = Field(default=None, ge=0, alias="lastMealTime")
    quiet_hours_start: Optional[int] = Field(default=None, ge=0, le=23, alias="quietHoursStart")
    quiet_hours_end: Optional[int] = Field(default=None, ge=0, le=23, alias="quietHoursEnd")
    language: Optional[Language] = None
    target_hours: Optional[int] = Field(default=None, ge=1, le=24, alias="targetHours")

    @model_validator(mode="after")
    def validate_quiet_hours(self) -> "SubscriptionUpdateRequest":
        provided = self.model_fields_set
        if "quiet_hours_start" in provided or "quiet_hours_end" in provided:
            if not {"quiet_hours_start", "quiet_hours_end"} <= provided:
                raise ValueError("Both quietHoursStart and quietHoursEnd must be provided")
            _check_quiet_hours(self.quiet_hours_start, self.quiet_hours_end)
        if "language" in provided and self.language is None:
            raise ValueError("Language must be 'en', 'de', or 'es'")
        return self

    def changes(self) -> dict[str, Any]:
        """Fields to write, keyed by column name."""

        changes = self.model_dump(exclude_unset=True, exclude={"endpoint"})
        if changes.get("language") is not None:
            changes["language"] = Language(changes["language"]).value
        return changes


class SubscribeResponse(BaseModel):
    success: bool = True
    message: str


class SuccessResponse(BaseModel):
    success: bool = True


class VapidPublicKeyResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    public_key: str = Field(alias="publicKey")
