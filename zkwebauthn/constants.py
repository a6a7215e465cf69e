"""Fixed sizes shared with the compiled WebAuthn circuits."""

# Must match the BoundedVec capacities declared by the Noir circuits.
CLIENT_DATA_JSON_MAX_LEN = 1024
AUTHENTICATOR_DATA_MAX_LEN = 2048
SIGNATURE_MAX_LEN = 1024
ID_MAX_LEN = 1023
ATTESTATION_OBJECT_MAX_LEN = 2048

CHALLENGE_LEN = 32

PUBLIC_KEY_CREDENTIAL_TYPE = "public-key"

# COSE algorithm identifiers
ES256 = -7
RS256 = -257

DEFAULT_TIMEOUT_MS = 60000
