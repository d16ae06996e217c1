"""Pydantic models for request bodies sent to the Gista backend."""

from pydantic import BaseModel, ConfigDict, Field


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class CreateUserRequest(_Payload):
    """Body of the create-user call."""

    user_id: str = Field(description="Client generated user id")
    email: str = Field(description="Account email")
    password: str = Field(description="Account password")
    username: str = Field(description="Display name")


class UpdateUserRequest(_Payload):
    """Body of the update-user call."""

    user_id: str = Field(description="Backend user id")
    username: str = Field(description="New display name")
    email: str = Field(description="New email")


class LinkData(_Payload):
    """The link portion of a store-link call."""

    category: str = Field(description="Category label")
    url: str = Field(description="Article URL")
    title: str = Field(description="Article title")


class StoreLinkRequest(_Payload):
    """Body of the store-link call."""

    user_id: str = Field(description="Backend user id")
    link: LinkData = Field(description="The link to store")
    auto_create_gist: bool = Field(
        default=True, description="Whether the backend should create a gist for the link"
    )


class LinkGistStatusRequest(_Payload):
    """Body of the update-link-gist-status call."""

    gist_id: str = Field(description="Backend gist id")
    image_url: str = Field(description="Gist artwork URL")
    link_title: str = Field(description="Title to record on the link")


class SegmentPayload(_Payload):
    """Wire form of a gist segment."""

    duration: int = Field(alias="playback_duration")
    title: str = Field(alias="segment_title")
    audio_url: str = Field(alias="segment_audioUrl")
    segment_index: int | None = Field(default=None, alias="segment_index")


class GistStatusPayload(_Payload):
    """Wire form of a gist production status."""

    in_production: bool = Field(alias="inProduction")
    production_status: str = Field(alias="production_status")


class CreateGistRequest(_Payload):
    """Body of the create-gist call."""

    title: str
    link: str
    image_url: str
    category: str
    segments: list[SegmentPayload] = Field(default_factory=list)
    playback_duration: int = 0
    link_id: str | None = None
    gist_id: str | None = Field(default=None, alias="gistId")
    is_finished: bool = False
    playback_time: int = 0
    status: GistStatusPayload


class GistUpdateRequest(_Payload):
    """Body of the full gist status update call."""

    status: GistStatusPayload
    is_played: bool | None = None
    ratings: int | None = None


class CategoryRequest(_Payload):
    """Body of the create-category and update-category calls."""

    name: str = ""
    tags: list[str] = Field(default_factory=list)
