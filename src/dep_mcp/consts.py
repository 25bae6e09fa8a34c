"""High-value constants for the DEP MCP package."""

# Package metadata
PACKAGE_VERSION = "0.3.0"
SERVER_NAME = "dep-mcp"
USER_AGENT = f"{SERVER_NAME}/{PACKAGE_VERSION}"

# External API contract consts
DEFAULT_BASE_URL = "https://mdmenrollment.apple.com"
SESSION_URL_PATH = "/session"
OAUTH_REALM = "ADM"
SESSION_HEADER = "X-ADM-Auth-Session"
PROTOCOL_VERSION_HEADER = "X-Server-Protocol-Version"
PROTOCOL_VERSION = "3"
JSON_CONTENT_TYPE = "application/json;charset=UTF8"

# Expiry signal defaults, overridable via config
AUTH_EXPIRED_STATUSES = (401, 403)
AUTH_EXPIRED_MARKERS = ("UNAUTHORIZED", "FORBIDDEN")
