"""Account & Data Service configuration models."""

from pydantic import BaseModel, Field


class ServiceConfig(BaseModel):
    """Where the account service lives and how long hand-offs may take.

    Endpoint and redirect target are opaque to the core and handed to the
    identity session unchanged.
    """

    endpoint: str = Field(
        default="http://localhost:54321",
        description="Account service endpoint",
    )
    redirect_url: str = Field(
        default="http://localhost:8080/",
        description="Where verification emails send the user back to",
    )
    persist_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Message persistence hand-off timeout",
    )
