"""Exception hierarchy for PatchGate.

Policy violations are data, not exceptions: the policy engine never raises.
Everything below is either caught per patch by the executor or, for
snapshot and rollback failures, a precondition violation for a whole batch.
"""


class PatchGateError(Exception):
    """Base class for all PatchGate errors."""


class ConfigurationError(PatchGateError):
    """Invalid policy config file or settings."""


class PatchApplyError(PatchGateError):
    """A single patch could not be applied."""

    def __init__(self, path: str, message: str):
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")


class PatchConfigurationError(PatchApplyError):
    """A patch is malformed (unknown op, missing content, missing newPath)."""


class SnapshotError(PatchGateError):
    """The pre-change snapshot could not be written."""


class RollbackError(PatchGateError):
    """Snapshot manifest missing, unreadable or tampered with."""
