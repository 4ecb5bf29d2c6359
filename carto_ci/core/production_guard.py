"""Production configuration guard — enforces hard constraints in production.

The guard validates production-critical settings before the webhook server
starts.  It fails hard (raises ``ProductionConfigError``) if any constraint
is violated.
"""

from __future__ import annotations

import logging

from carto_ci.config import CIConfig

logger = logging.getLogger(__name__)

# CIConfig field names that MUST be non-empty in production.
PRODUCTION_REQUIRED_SETTINGS: list[str] = [
    "github_token",
    "webhook_secret",
]


class ProductionConfigError(RuntimeError):
    """Raised when production configuration constraints are violated.

    The process should exit; this error must not be caught and ignored.
    """


def enforce_production_constraints(config: CIConfig) -> None:
    """Validate all production-critical configuration constraints.

    Constraints enforced
    --------------------
    1. Debug mode must be disabled.
    2. The GitHub token and the webhook secret must be configured.

    Raises
    ------
    ProductionConfigError
        If any production constraint is violated.
    """
    if not config.is_production:
        return

    violations: list[str] = []

    if config.debug:
        violations.append(
            "debug=True is not allowed in production. Set CARTO_CI_DEBUG=false."
        )

    for key_name in PRODUCTION_REQUIRED_SETTINGS:
        if not getattr(config, key_name, ""):
            violations.append(
                f"Setting '{key_name}' is required in production but not configured. "
                f"Set CARTO_CI_{key_name.upper()}."
            )

    if violations:
        msg = (
            "Production configuration guard failed.\n"
            + "\n".join(f"  - {v}" for v in violations)
        )
        logger.critical(msg)
        raise ProductionConfigError(msg)

    logger.info("Production configuration guard passed.")
