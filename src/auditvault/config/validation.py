"""Configuration validation for startup checks.

Validates that required configuration is present and valid before the
application starts accepting requests.

Usage:
    from auditvault.config.validation import validate_configuration

    # During startup
    results = validate_configuration()
    for result in results:
        logger.warning(str(result))
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from auditvault.config.settings import Settings, get_settings
from auditvault.utils.exceptions import ConfigurationError

logger = logging.getLogger("auditvault.config")

# Bounds enforced by the retention settings screen
RETENTION_MONTHS_RANGE = (1, 36)
ALERT_DAYS_RANGE = (1, 60)


class ValidationSeverity(str, Enum):
    """Severity of configuration validation issues."""

    ERROR = "error"  # Must be fixed, app cannot start
    WARNING = "warning"  # Should be fixed, app can start but may have issues


@dataclass
class ValidationResult:
    """Result of a configuration validation check."""

    field: str
    severity: ValidationSeverity
    message: str
    suggestion: str | None = None

    def __str__(self) -> str:
        prefix = "ERROR" if self.severity == ValidationSeverity.ERROR else "WARNING"
        result = f"[{prefix}] {self.field}: {self.message}"
        if self.suggestion:
            result += f"\n  Suggestion: {self.suggestion}"
        return result


def validate_configuration(settings: Settings | None = None) -> list[ValidationResult]:
    """Validate application configuration.

    Args:
        settings: Settings to validate (default: global settings)

    Returns:
        List of validation results (empty if all checks pass)
    """
    if settings is None:
        settings = get_settings()

    results: list[ValidationResult] = []
    results.extend(_validate_database(settings))
    results.extend(_validate_retention(settings))
    results.extend(_validate_environment(settings))
    return results


def validate_or_raise(settings: Settings | None = None) -> None:
    """Validate configuration and raise if errors found.

    Args:
        settings: Settings to validate

    Raises:
        ConfigurationError: If any validation errors are found
    """
    results = validate_configuration(settings)
    errors = [r for r in results if r.severity == ValidationSeverity.ERROR]

    if errors:
        error_messages = "\n".join(str(e) for e in errors)
        raise ConfigurationError(f"Configuration validation failed:\n{error_messages}")

    for warning in results:
        logger.warning(str(warning))


# =============================================================================
# Validators
# =============================================================================


def _validate_database(settings: Settings) -> list[ValidationResult]:
    """Validate database configuration."""
    results: list[ValidationResult] = []

    if not settings.DATABASE_URL:
        results.append(
            ValidationResult(
                field="DATABASE_URL",
                severity=ValidationSeverity.ERROR,
                message="Database URL is not configured",
                suggestion="Set DATABASE_URL environment variable",
            )
        )
    elif not settings.DATABASE_URL.startswith(("postgresql", "sqlite")):
        results.append(
            ValidationResult(
                field="DATABASE_URL",
                severity=ValidationSeverity.WARNING,
                message=f"Unexpected database type in URL: {settings.DATABASE_URL[:20]}...",
                suggestion="auditvault is designed for PostgreSQL or SQLite",
            )
        )

    if settings.DATABASE_POOL_SIZE < 1:
        results.append(
            ValidationResult(
                field="DATABASE_POOL_SIZE",
                severity=ValidationSeverity.ERROR,
                message=f"Pool size {settings.DATABASE_POOL_SIZE} must be positive",
            )
        )

    return results


def _validate_retention(settings: Settings) -> list[ValidationResult]:
    """Validate retention defaults."""
    results: list[ValidationResult] = []
    retention = settings.retention

    if retention.deletion_batch_size < 1:
        results.append(
            ValidationResult(
                field="retention.deletion_batch_size",
                severity=ValidationSeverity.ERROR,
                message=f"Batch size {retention.deletion_batch_size} must be at least 1",
                suggestion="Use the default of 100",
            )
        )

    low, high = RETENTION_MONTHS_RANGE
    if not (low <= retention.retention_months <= high):
        results.append(
            ValidationResult(
                field="retention.retention_months",
                severity=ValidationSeverity.ERROR,
                message=f"Retention of {retention.retention_months} months is outside {low}..{high}",
            )
        )

    low, high = ALERT_DAYS_RANGE
    if not (low <= retention.alert_days_before <= high):
        results.append(
            ValidationResult(
                field="retention.alert_days_before",
                severity=ValidationSeverity.ERROR,
                message=f"Alert lead time of {retention.alert_days_before} days is outside {low}..{high}",
            )
        )

    if retention.postpone_days < 1:
        results.append(
            ValidationResult(
                field="retention.postpone_days",
                severity=ValidationSeverity.WARNING,
                message="Postponement shorter than one day makes events immediately deletable again",
            )
        )

    return results


def _validate_environment(settings: Settings) -> list[ValidationResult]:
    """Validate environment-specific settings."""
    results: list[ValidationResult] = []

    if settings.ENVIRONMENT == "production" and settings.DEBUG:
        results.append(
            ValidationResult(
                field="DEBUG",
                severity=ValidationSeverity.ERROR,
                message="Debug mode must be disabled in production",
                suggestion="Set DEBUG=false for production",
            )
        )

    if settings.ENVIRONMENT == "production" and settings.DATABASE_URL.startswith("sqlite"):
        results.append(
            ValidationResult(
                field="DATABASE_URL",
                severity=ValidationSeverity.WARNING,
                message="SQLite does not provide the concurrent conditional updates deletion relies on",
                suggestion="Use PostgreSQL in production",
            )
        )

    if settings.ENVIRONMENT == "production" and settings.log_level == "DEBUG":
        results.append(
            ValidationResult(
                field="log_level",
                severity=ValidationSeverity.WARNING,
                message="DEBUG log level in production may expose audit snapshots",
                suggestion="Use INFO or WARNING for production",
            )
        )

    return results


def get_configuration_summary(settings: Settings | None = None) -> dict[str, Any]:
    """Get a summary of current configuration (safe for logging).

    Excludes the database connection string.
    """
    if settings is None:
        settings = get_settings()

    return {
        "environment": settings.ENVIRONMENT,
        "debug": settings.DEBUG,
        "log_level": settings.log_level,
        "cors_origins_count": len(settings.CORS_ORIGINS),
        "database_pool_size": settings.DATABASE_POOL_SIZE,
        "database_max_overflow": settings.DATABASE_MAX_OVERFLOW,
        "retention_months": settings.retention.retention_months,
        "alert_days_before": settings.retention.alert_days_before,
        "deletion_batch_size": settings.retention.deletion_batch_size,
    }
