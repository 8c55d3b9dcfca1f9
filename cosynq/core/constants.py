# cosynq/core/constants.py
"""Application-wide constants."""

BRAND_NAME = "Cosynq"
SERVICE_NAME = "cosynq-api"

API_TITLE = f"{BRAND_NAME} Booking API"
API_DESCRIPTION = "Space booking, capacity and availability for coworking locations"
API_VERSION = "0.1.0"
API_V1_PREFIX = "/api/v1"

# Booking references are a configurable prefix plus a random suffix
BOOKING_REFERENCE_SUFFIX_LENGTH = 8
BOOKING_REFERENCE_MAX_PREFIX_LENGTH = 8
BOOKING_REFERENCE_MAX_LENGTH = BOOKING_REFERENCE_MAX_PREFIX_LENGTH + BOOKING_REFERENCE_SUFFIX_LENGTH
