"""Catalog records shared by the YouTube client, storage and the timeline."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for records serialized with camelCase keys.

    Fields are populated by Python name internally and dumped by alias
    (``channelTitle``, ``publishedAt``) on the wire.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Thumbnail(CamelModel):
    """One labeled image reference (``default``, ``medium``, ``high``, ...)."""

    url: str
    width: int | None = None
    height: int | None = None


class Video(CamelModel):
    """One playable unit in the catalog.

    ``published_at`` is epoch seconds and only orders the catalog.
    ``duration`` is whole seconds; zero is valid and yields a zero-width
    slot in the timeline.
    """

    id: str = Field(min_length=1)
    title: str
    channel_id: str = ""
    channel_title: str = ""
    description: str = ""
    published_at: int
    duration: int = Field(default=0, ge=0)
    thumbnail: dict[str, Thumbnail] = Field(default_factory=dict)


class SubscriptionRecord(CamelModel):
    """A channel the user is subscribed to on YouTube."""

    id: str = Field(min_length=1)
    channel_id: str = Field(min_length=1)
    title: str
    thumbnails: dict[str, Thumbnail] = Field(default_factory=dict)
    enabled: bool = False
