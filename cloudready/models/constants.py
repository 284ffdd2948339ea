"""Constants for cloud-ready-web.

This module centralizes field limits and wire formats used throughout the application.
"""

# User field limits
USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 50
EMAIL_MAX_LENGTH = 100
NAME_MAX_LENGTH = 100

# Wire format for timestamps (no timezone offset; values are UTC)
WIRE_DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S"

# Sortable user attributes: accepted request name -> model attribute
SORTABLE_USER_FIELDS = {
    "id": "id",
    "username": "username",
    "email": "email",
    "firstName": "first_name",
    "first_name": "first_name",
    "lastName": "last_name",
    "last_name": "last_name",
    "enabled": "enabled",
    "createdAt": "created_at",
    "created_at": "created_at",
    "updatedAt": "updated_at",
    "updated_at": "updated_at",
}

# Cache key prefixes for user lookups
CACHE_KEY_ID = "id"
CACHE_KEY_USERNAME = "username"
