"""Token contract constants."""

DEFAULT_EXPIRY_HOURS = 1
MAX_EXPIRY_HOURS = 72

# Wire names of the signed payload
REQUIRED_PAYLOAD_FIELDS = ("applicationId", "allowedUrls", "expiresAt", "signatureId")

TOKEN_SEPARATOR = "."
