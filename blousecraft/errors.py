# blousecraft/errors.py
"""Business-rule errors for the marketplace.

Every error carries a short machine-readable ``kind`` and a message that is
safe to show to the caller. Technical details go to the log only.

- InvalidArgument: malformed or missing input (e.g. absent coordinates)
- NotFound: the entity does not exist
- Forbidden: authenticated, but not allowed to touch the entity
- InvalidState: the operation is not legal in the entity's current state
- Conflict: a unique resource already exists, or a concurrent write won
- ConfigurationError: bad deployment settings, raised before serving requests
"""

from __future__ import annotations

import structlog

logger = structlog.get_logger(__name__)


class MarketplaceError(Exception):
    """Base exception for marketplace operations.

    Args:
        user_message: Safe message returned to the client.
        internal_details: Optional technical details, logged and never returned.
    """

    kind = "error"
    status_code = 500

    def __init__(self, user_message: str, *, internal_details: str | None = None) -> None:
        super().__init__(user_message)
        self.user_message = user_message

        if internal_details:
            logger.warning(
                "marketplace_error",
                error_type=self.__class__.__name__,
                user_message=user_message,
                internal_details=internal_details,
            )

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "message": self.user_message}


class InvalidArgument(MarketplaceError):
    kind = "invalid_argument"
    status_code = 400


class InvalidState(MarketplaceError):
    kind = "invalid_state"
    status_code = 400


class Forbidden(MarketplaceError):
    kind = "forbidden"
    status_code = 403


class NotFound(MarketplaceError):
    kind = "not_found"
    status_code = 404


class Conflict(MarketplaceError):
    kind = "conflict"
    status_code = 409


class ConfigurationError(MarketplaceError):
    """Raised at startup when the service is configured with something it cannot run on."""

    kind = "configuration"
    status_code = 500
