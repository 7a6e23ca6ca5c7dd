from __future__ import annotations

import hmac
import logging

from docketwatch.errors import ConfigurationError, UnauthorizedError

logger = logging.getLogger(__name__)


def normalize_bearer(value: str | None) -> str:
    """Strip an optional ``Bearer `` prefix and surrounding whitespace."""

    if not value:
        return ""
    stripped = value.strip()
    if stripped.lower().startswith("bearer "):
        stripped = stripped.split(None, 1)[1].strip()
    return stripped


def verify_trigger_secret(
    expected: str | None,
    presented: str | None,
    *,
    required: bool = False,
) -> None:
    """
    Reject a scheduler invocation before any scanning happens.

    With no configured secret every caller is accepted, unless ``required`` is set,
    in which case the deployment itself is misconfigured.
    """

    if not expected:
        if required:
            raise ConfigurationError("A trigger secret is required but none is configured")
        return
    token = normalize_bearer(presented)
    if not token or not hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("Rejected reminder trigger with invalid secret")
        raise UnauthorizedError("Unauthorized")
