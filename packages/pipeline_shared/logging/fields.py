"""Canonical logging field names for cross-component consistency.

These constants define a stable key set for structured logs and context
propagation.
"""

TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"

# Stage execution fields.
STAGE = "stage"
RESOURCE_KEY = "resource_key"

# Common service-level fields.
SERVICE = "service"
ENVIRONMENT = "environment"
