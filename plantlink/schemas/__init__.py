from plantlink.schemas.device import DeviceStatusSchema
from plantlink.schemas.events import PlantNotification

__all__ = ["DeviceStatusSchema", "PlantNotification"]
