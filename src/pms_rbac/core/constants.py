"""Application-wide constants.

This module defines constants used throughout the access-control layer
to avoid magic strings and ensure consistency.
"""

# Permission key syntax
PERMISSION_KEY_SEPARATOR = ":"

# Module-permission shorthands checked by check_module_permission
MODULE_ACCESS_ACTIONS = ("view", "read")
DEFAULT_PAGE_ACTION = "view"
DEFAULT_DATA_ACTION = "read"

# Built-in role names
SUPER_ADMIN_ROLE = "超级管理员"
SYSTEM_ADMIN_ROLE = "系统管理员"
REGULAR_USER_ROLE = "普通用户"
GUEST_ROLE = "访客"
SYSTEM_ADMIN_ROLES = (SUPER_ADMIN_ROLE, SYSTEM_ADMIN_ROLE)

# Username that historically bypassed every check
LEGACY_SUPERUSER_USERNAME = "admin"

# Identity lookup
DEFAULT_IDENTITY_TIMEOUT_SECONDS = 5.0

# String field lengths
MAX_USERNAME_LENGTH = 100
MAX_EMAIL_LENGTH = 255
MAX_NAME_LENGTH = 255
MAX_ROLE_NAME_LENGTH = 100
MAX_PERMISSION_NAME_LENGTH = 150
MAX_DESCRIPTION_LENGTH = 255
MAX_STATUS_LENGTH = 20
