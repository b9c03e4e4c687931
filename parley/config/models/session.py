"""Session behaviour configuration models."""

from pydantic import BaseModel, Field


class SessionConfig(BaseModel):
    """Defaults for profile derivation, selection policy and event intake."""

    single_pane: bool = Field(
        default=False,
        description="Layout shows one pane at a time (no auto-selection)",
    )
    fallback_display_name: str = Field(
        default="User",
        description="Display name when no email local-part is available",
    )
    default_bio: str = Field(
        default="Hello! I'm using Parley",
        description="Bio given to freshly derived profiles",
    )
    avatar_base_url: str = Field(
        default="https://api.dicebear.com/7.x/avataaars/svg",
        description="Avatar generator seeded by email",
    )
    event_queue_size: int = Field(
        default=1000,
        gt=0,
        description="Maximum buffered live events before the feed is throttled",
    )
