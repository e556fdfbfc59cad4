"""
Status Decoder
==============

Turns the body of ``GET /status`` into a StatusReading.

The decode is all-or-nothing: any missing or mistyped field rejects the whole
payload and no partial reading is built.
"""

import logging

from pydantic import ValidationError as PydanticValidationError

from plantlink.constants import PLANT_COUNT
from plantlink.domain.exceptions import MalformedPayloadError
from plantlink.domain.status import StatusReading
from plantlink.schemas.device import DeviceStatusSchema

logger = logging.getLogger(__name__)


class StatusDecoder:
    """Validates and decodes device status payloads."""

    def decode(self, raw_body: str | bytes) -> StatusReading:
        """
        Decode a raw JSON status body.

        Args:
            raw_body: Response body as returned by the transport

        Returns:
            StatusReading built from the first PLANT_COUNT array entries

        Raises:
            MalformedPayloadError: If the body is not JSON or has the wrong shape
        """
        try:
            status = DeviceStatusSchema.model_validate_json(raw_body)
        except PydanticValidationError as exc:
            problems = [
                f"{'.'.join(str(part) for part in err['loc']) or '<body>'}: {err['msg']}" for err in exc.errors()
            ]
            logger.debug("Rejected status payload %r: %s", raw_body, problems)
            raise MalformedPayloadError(
                "Malformed status payload: " + "; ".join(problems),
                detail={"problems": problems},
            ) from exc

        return StatusReading(
            moisture=tuple(status.moisture[:PLANT_COUNT]),
            pump_running=status.pump_running,
            valves_running=tuple(status.valves_running[:PLANT_COUNT]),
        )
