"""Typed alert channel configuration, parsed from the stored JSON config."""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator
from pydantic.alias_generators import to_camel


class _ChannelConfig(BaseModel):
    # Stored configs use camelCase keys (webhookUrl); accept snake_case too.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class WebhookConfig(_ChannelConfig):
    url: str = ""
    method: str = "POST"
    headers: dict[str, str] = {}

    @field_validator("method")
    @classmethod
    def _upper(cls, v: str) -> str:
        return v.upper()


class EmailConfig(_ChannelConfig):
    to: list[str] = []
    from_address: str | None = Field(default=None, alias="from")

    @field_validator("to", mode="before")
    @classmethod
    def _listify(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [v] if v else []
        return list(v)


class SlackConfig(_ChannelConfig):
    webhook_url: str = ""


class DiscordConfig(_ChannelConfig):
    webhook_url: str = ""


class _BaseChannel(BaseModel):
    id: str
    name: str


class WebhookChannel(_BaseChannel):
    type: Literal["webhook"] = "webhook"
    config: WebhookConfig = WebhookConfig()


class EmailChannel(_BaseChannel):
    type: Literal["email"] = "email"
    config: EmailConfig = EmailConfig()


class SlackChannel(_BaseChannel):
    type: Literal["slack"] = "slack"
    config: SlackConfig = SlackConfig()


class DiscordChannel(_BaseChannel):
    type: Literal["discord"] = "discord"
    config: DiscordConfig = DiscordConfig()


class UnknownChannel(_BaseChannel):
    """A stored channel whose type has no sender."""

    type: str
    config: dict = {}


class InvalidChannel(_BaseChannel):
    """A stored channel of a known type whose config failed validation."""

    type: str
    error: str


KnownChannel = Annotated[
    Union[WebhookChannel, EmailChannel, SlackChannel, DiscordChannel],
    Field(discriminator="type"),
]
Channel = Union[
    WebhookChannel, EmailChannel, SlackChannel, DiscordChannel, UnknownChannel, InvalidChannel
]

CHANNEL_TYPES = frozenset({"webhook", "email", "slack", "discord"})

_channel_adapter: TypeAdapter = TypeAdapter(KnownChannel)


def parse_channel(id: str, name: str, type: str, config: dict | None) -> Channel:
    """Build the typed channel for a stored row; unrecognised types stay untyped."""
    if type not in CHANNEL_TYPES:
        return UnknownChannel(id=id, name=name, type=type, config=config or {})
    try:
        return _channel_adapter.validate_python(
            {"id": id, "name": name, "type": type, "config": config or {}}
        )
    except ValidationError as exc:
        return InvalidChannel(id=id, name=name, type=type, error=str(exc.errors()[0]["msg"]))
