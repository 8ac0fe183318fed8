"""
Application-wide constants.
Centralizes magic numbers and configuration values.
"""

# Validation limits
MAX_SERVICE_NAME_LENGTH = 100
MAX_SERVICE_DESCRIPTION_LENGTH = 1000
MAX_NOTES_LENGTH = 1000
MAX_BULK_UPDATE_SIZE = 500

# Time constants
HOURS_IN_DAY = 24

# Listing limits
APPOINTMENTS_LIST_LIMIT = 500

# Header set by the upstream gateway after authenticating the caller
USER_ID_HEADER = "X-User-Id"
