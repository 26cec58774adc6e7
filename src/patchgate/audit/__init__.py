"""Audit trail module for PatchGate."""

from patchgate.audit.logger import (
    AuditLogEntry,
    AuditLogger,
    JsonlAuditLogger,
    build_log_entry,
    format_history,
    read_log,
)

__all__ = ["AuditLogEntry", "AuditLogger", "JsonlAuditLogger", "build_log_entry", "format_history", "read_log"]
