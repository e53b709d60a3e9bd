import json
from datetime import datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from notification_sync.models.enums import NotificationPriority


class RelatedUser(BaseModel):
    model_config = ConfigDict(frozen=True, extra='ignore')

    id: int
    full_name: str = ''
    profile_image_url: Optional[str] = None


class Notification(BaseModel):
    model_config = ConfigDict(frozen=True, extra='ignore', populate_by_name=True)

    id: int
    type: str
    title: str = ''
    message: str = ''
    priority: NotificationPriority = NotificationPriority.NORMAL
    is_read: bool = False
    action_url: Optional[str] = None
    action_text: Optional[str] = None
    created_at: datetime
    related_user: Optional[RelatedUser] = None
    metadata: Optional[dict[str, Any]] = Field(
        default=None,
        validation_alias=AliasChoices('metadata', 'extra_data'),
    )

    @field_validator('type', mode='before')
    @classmethod
    def normalize_type(cls, value):  # type: ignore[override]
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator('priority', mode='before')
    @classmethod
    def normalize_priority(cls, value):  # type: ignore[override]
        if value is None or value == '':
            return NotificationPriority.NORMAL
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator('is_read', mode='before')
    @classmethod
    def default_is_read(cls, value):  # type: ignore[override]
        return False if value is None else value

    @field_validator('metadata', mode='before')
    @classmethod
    def parse_metadata(cls, value):  # type: ignore[override]
        if value is None or value == '':
            return None
        if isinstance(value, str):
            try:
                decoded = json.loads(value)
            except json.JSONDecodeError:
                return {'raw': value}
            return decoded if isinstance(decoded, dict) else {'value': decoded}
        return value

    def as_read(self) -> 'Notification':
        if self.is_read:
            return self
        return self.model_copy(update={'is_read': True})


class NotificationFilter(BaseModel):
    unread_only: bool = False
    type: Optional[str] = None
    limit: Optional[int] = Field(default=None, ge=1)
    offset: Optional[int] = Field(default=None, ge=0)

    def to_query(self) -> dict[str, str]:
        query: dict[str, str] = {}
        if self.unread_only:
            query['unread_only'] = 'true'
        if self.limit:
            query['limit'] = str(self.limit)
        if self.offset:
            query['offset'] = str(self.offset)
        if self.type:
            query['type'] = self.type
        return query


class NotificationPage(BaseModel):
    notifications: list[Notification] = Field(default_factory=list)
    unread_count: int = Field(default=0, ge=0)


class UnreadCount(BaseModel):
    unread_count: int = Field(default=0, ge=0)


class NotificationPreferences(BaseModel):
    model_config = ConfigDict(extra='ignore')

    email_enabled: bool = True
    push_enabled: bool = True
    in_app_enabled: bool = True
    quiet_hours_enabled: bool = False
    quiet_hours_start: Optional[str] = None
    quiet_hours_end: Optional[str] = None
    email_notifications: dict[str, bool] = Field(default_factory=dict)
    push_notifications: dict[str, bool] = Field(default_factory=dict)
    in_app_notifications: dict[str, bool] = Field(default_factory=dict)

    @field_validator('email_notifications', 'push_notifications', 'in_app_notifications', mode='before')
    @classmethod
    def default_channel_map(cls, value):  # type: ignore[override]
        return {} if value is None else value


class PreferencesUpdate(BaseModel):
    model_config = ConfigDict(extra='forbid')

    email_enabled: Optional[bool] = None
    push_enabled: Optional[bool] = None
    in_app_enabled: Optional[bool] = None
    quiet_hours_enabled: Optional[bool] = None
    quiet_hours_start: Optional[str] = None
    quiet_hours_end: Optional[str] = None
    email_notifications: Optional[dict[str, bool]] = None
    push_notifications: Optional[dict[str, bool]] = None
    in_app_notifications: Optional[dict[str, bool]] = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class TestNotificationRequest(BaseModel):
    __test__ = False

    title: Optional[str] = None
    message: Optional[str] = None
    type: Optional[str] = None
    action_url: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ApiEnvelope(BaseModel):
    model_config = ConfigDict(extra='ignore')

    success: bool = False
    data: Any = None
    error: Optional[str] = None
    message: Optional[str] = None
