"""
Structured Logging and Action Audit

DESIGN DECISION: Every dispatched action is logged locally as one
structured line, whether or not it changed the state. Refused actions
(edits to a protected account, malformed payloads) are not errors in
the reducer, so this log is where they become visible.

The auditor:
- Never raises (a logging failure must not break a sale)
- Logs the log-entry id so a state change can be traced to its entry
"""

from typing import Optional

import structlog

from shop_ledger.models.actions import BaseAction
from shop_ledger.models.state import AppState


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def get_logger(name: Optional[str] = None):
    """Get a structlog logger bound to a module name."""
    return structlog.get_logger(name)


class ActionAuditor:
    """
    Logs dispatched actions.

    One line per dispatch:
    - action_dispatched  when the state changed
    - action_ignored     when the reducer returned the same state
    """

    def __init__(self, username: Optional[str] = None):
        self._username = username
        self._logger = get_logger("shop_ledger.audit")

    def record(
        self,
        action: BaseAction,
        before: AppState,
        after: AppState,
    ) -> None:
        try:
            appended = after.logs[-1] if len(after.logs) > len(before.logs) else None
            fields = {
                "action_type": getattr(action, "type", type(action).__name__),
                "user": self._username,
                "log_entry_id": appended.id if appended else None,
                "logs_before": len(before.logs),
                "logs_after": len(after.logs),
            }
            if after is before:
                self._logger.info("action_ignored", **fields)
            else:
                self._logger.info("action_dispatched", **fields)
        except Exception as e:
            self._logger.error("audit_record_failed", error=str(e))

    def rejected(self, raw_type: Optional[str], reason: str) -> None:
        """Log an action that could not be parsed."""
        self._logger.warning(
            "action_rejected",
            action_type=raw_type,
            user=self._username,
            reason=reason,
        )
