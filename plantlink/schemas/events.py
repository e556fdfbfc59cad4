from typing import Literal

from pydantic import BaseModel, Field

NotificationCategory = Literal["status", "alert", "test"]


class PlantNotification(BaseModel):
    """Local notification handed to the platform notification sink."""

    notification_id: int
    title: str
    description: str
    badge_number: int = Field(ge=0)
    category: NotificationCategory = "status"
    plant_index: int | None = None
