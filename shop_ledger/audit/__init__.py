"""Logging and action audit package."""

from shop_ledger.audit.logger import ActionAuditor, get_logger

__all__ = ["ActionAuditor", "get_logger"]
