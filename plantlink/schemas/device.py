"""
Wire schemas for the device HTTP API.
"""

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt

from plantlink.constants import PLANT_COUNT


class DeviceStatusSchema(BaseModel):
    """Body of ``GET /status``.

    Arrays may carry more than PLANT_COUNT entries; only the first
    PLANT_COUNT are used. Unknown keys are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    moisture: list[StrictInt] = Field(min_length=PLANT_COUNT)
    pump_running: StrictBool = Field(alias="pumpRunning")
    valves_running: list[StrictBool] = Field(alias="valvesRunning", min_length=PLANT_COUNT)
