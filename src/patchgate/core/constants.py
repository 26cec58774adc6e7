"""Domain constants for PatchGate."""

# Safety floor: secrets and infra metadata an agent must never touch
DEFAULT_BLOCKLIST: tuple[str, ...] = (
    ".env",
    ".env.*",
    "*.pem",
    "*.key",
    "*.secret",
    "node_modules/**",
    ".git/**",
)

PATCH_OPERATIONS: tuple[str, ...] = ("create", "update", "delete", "rename")

# On-disk layout, relative to the working directory
STATE_DIR: str = ".patchgate"
SNAPSHOTS_DIR: str = "snapshots"
AUDIT_LOG_NAME: str = "audit.log"
MANIFEST_NAME: str = "manifest.json"
SNAPSHOT_ID_PREFIX: str = "patchgate-snapshot"
DEFAULT_CONFIG_FILE: str = ".patchgate.yaml"

# Atomic writes
TEMP_SUFFIX: str = ".pg-tmp"

# Reserved pseudo-paths used in ApplyResult.errors
SNAPSHOT_ERROR_PATH: str = "<snapshot>"
POLICY_ERROR_PATH: str = "<policy>"

CANCELLED_REASON: str = "Cancelled by user"
DEFAULT_HISTORY_LIMIT: int = 10

# Always enforced on top of the configured blocklist: PatchGate's own state
RESERVED_BLOCKLIST: tuple[str, ...] = (f"{STATE_DIR}/**",)
