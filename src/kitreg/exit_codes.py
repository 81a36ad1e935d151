"""Exit codes for kitreg CLI commands.

All commands use consistent exit codes so CI jobs can tell a failed
validation apart from a broken registry setup.
"""

# Success
SUCCESS = 0

# Errors
GENERAL_ERROR = 1
INVALID_ARGS = 2
SCHEMA_INVALID = 3
TARGET_NOT_FOUND = 4
CONFIG_INVALID = 5
