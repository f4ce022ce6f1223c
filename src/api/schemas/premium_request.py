"""Request schemas for the Premium API

Pydantic models for validating incoming HTTP requests.
"""

from pydantic import BaseModel, Field


class SubscriptionActionRequestSchema(BaseModel):
    """
    Request schema for activating or cancelling a feature

    Used for POST /premium/guilds/{guild_id}/features/{feature_id}/activate
    and .../cancel.
    """

    user_id: str = Field(
        ...,
        min_length=1,
        description="User paying for (or cancelling) the feature"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "184405311681986560"
            }
        }
