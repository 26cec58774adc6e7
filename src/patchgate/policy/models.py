"""Policy Models for PatchGate."""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel, to_snake

from patchgate.core.constants import DEFAULT_BLOCKLIST
from patchgate.patches.models import AnyPatch


class PolicyConfig(BaseModel):
    """Immutable per-run policy, built once from defaults plus overrides."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True, extra="forbid")

    blocklist: tuple[str, ...] = DEFAULT_BLOCKLIST
    require_approval: bool = False
    enable_snapshot: bool = True
    fail_on_blocked: bool = False
    # Stored for callers; PatchGate never executes these
    run_typecheck: bool = False
    validate_command: str | None = None

    @classmethod
    def merged(cls, overrides: "PolicyConfig | Mapping[str, Any] | None" = None) -> "PolicyConfig":
        if overrides is None:
            return cls()
        if isinstance(overrides, PolicyConfig):
            return overrides
        # Later keys win, whichever spelling they use
        return cls.model_validate({to_snake(k): v for k, v in overrides.items() if v is not None})


class PolicyViolation(BaseModel):
    model_config = ConfigDict(frozen=True)
    patch: AnyPatch
    reason: str


class PolicyResult(BaseModel):
    model_config = ConfigDict(frozen=True)
    allowed: tuple[AnyPatch, ...] = ()
    blocked: tuple[PolicyViolation, ...] = ()

    @property
    def blocked_count(self) -> int:
        return len(self.blocked)
