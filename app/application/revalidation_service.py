"""On-demand cache revalidation.

Handles authenticated invalidation requests with:
- Constant-time shared secret comparison
- Tag allow-list validation
- Tag or path addressed discard
"""

import hmac
import re
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog

from app.application.cache_service import CacheService
from app.domain.exceptions import MisconfiguredError, UnauthorizedError, ValidationError

logger = structlog.get_logger()

TAG_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")
MAX_PATH_LENGTH = 512


def secrets_match(provided: str | None, expected: str) -> bool:
    """Compare a presented secret with the configured one in constant time.

    Equal-length inputs are compared in full whatever the mismatch
    position. On a length mismatch the configured secret is compared with
    itself first, so a wrong-length guess costs about as much as a
    right-length one.

    Args:
        provided: Secret presented by the caller (None if absent).
        expected: Configured secret.

    Returns:
        True if the secrets are identical.
    """
    expected_bytes = expected.encode("utf-8")
    provided_bytes = (provided or "").encode("utf-8")

    if len(provided_bytes) != len(expected_bytes):
        hmac.compare_digest(expected_bytes, expected_bytes)
        return False

    return hmac.compare_digest(provided_bytes, expected_bytes)


class RevalidationType(str, Enum):
    """What an invalidation request addresses."""

    TAG = "tag"
    PATH = "path"


@dataclass
class RevalidationResult:
    """Result of an accepted invalidation request.

    Attributes:
        type: Tag or path.
        target: The tag or path that was invalidated.
        discarded: Number of cache entries dropped.
        timestamp: Epoch milliseconds of the invalidation.
    """

    type: RevalidationType
    target: str
    discarded: int
    timestamp: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to the endpoint's JSON shape."""
        return {
            "revalidated": True,
            "type": self.type.value,
            self.type.value: self.target,
            "discarded": self.discarded,
            "timestamp": self.timestamp,
        }


class RevalidationService:
    """Authenticates and applies invalidation requests.

    Example usage:
        service = RevalidationService(cache, secret=settings.revalidation_secret)
        service.authorize(request.headers.get("x-revalidation-secret"))
        result = service.revalidate({"type": "tag", "tag": "products"})
    """

    def __init__(self, cache: CacheService, secret: str | None) -> None:
        """Initialize service.

        Args:
            cache: Cache service to invalidate.
            secret: Shared secret; None disables the endpoint.
        """
        self.cache = cache
        self.secret = secret or None

    def authorize(self, provided: str | None) -> None:
        """Check a presented secret.

        Args:
            provided: Value of the secret header.

        Raises:
            MisconfiguredError: If no secret is configured server-side.
            UnauthorizedError: If the secret is missing or wrong.
        """
        if self.secret is None:
            logger.error("Revalidation secret not configured")
            raise MisconfiguredError("Revalidation secret is not configured")

        if not secrets_match(provided, self.secret):
            logger.warning("Invalid revalidation secret")
            raise UnauthorizedError("Invalid secret")

    def revalidate(self, payload: Any) -> RevalidationResult:
        """Validate an invalidation body and discard matching entries.

        Args:
            payload: Decoded JSON body ``{type, tag?, path?}``.

        Returns:
            RevalidationResult.

        Raises:
            ValidationError: If the body is malformed.
        """
        if not isinstance(payload, dict):
            raise ValidationError("Invalid request body")

        raw_type = payload.get("type", RevalidationType.TAG.value)
        try:
            kind = RevalidationType(raw_type)
        except ValueError:
            raise ValidationError(
                f"Invalid revalidation type: {raw_type}",
                details={"allowed": [t.value for t in RevalidationType]},
            ) from None

        if kind is RevalidationType.TAG:
            tag = payload.get("tag")
            if not tag:
                raise ValidationError("Missing tag or path")
            if not isinstance(tag, str) or not TAG_PATTERN.match(tag):
                raise ValidationError("Invalid tag", details={"pattern": TAG_PATTERN.pattern})
            discarded = self.cache.invalidate_tag(tag)
            target = tag
        else:
            path = payload.get("path")
            if not path:
                raise ValidationError("Missing tag or path")
            if not isinstance(path, str) or not path.startswith("/") or len(path) > MAX_PATH_LENGTH:
                raise ValidationError("Invalid path")
            discarded = self.cache.invalidate_path(path)
            target = path

        logger.info(
            "Revalidation applied",
            type=kind.value,
            target=target,
            discarded=discarded,
        )
        return RevalidationResult(
            type=kind,
            target=target,
            discarded=discarded,
            timestamp=int(time.time() * 1000),
        )
