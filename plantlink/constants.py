"""
Device protocol constants.
"""

# Number of plants (moisture probes / valves) wired to one device
PLANT_COUNT = 3

# HTTP paths exposed by the device firmware
STATUS_PATH = "/status"
VALVE_PATH_TEMPLATE = "/valve{number}{action}"

DEFAULT_SCHEME = "http"
SUPPORTED_SCHEMES = ("http", "https")

# Notification ids start here so they never clash with system ids
NOTIFICATION_ID_BASE = 1000
