"""Utility modules for auditvault."""

from auditvault.utils.exceptions import AuditVaultError, ConfigurationError

__all__ = [
    "AuditVaultError",
    "ConfigurationError",
]
