"""
Bearer credential cache for the Klacks backend client.

The cache holds a single bearer token and its expiry. A cached token is only
used while the current time is before the expiry minus a safety margin, so a
request never goes out with a token that is about to lapse.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

DEFAULT_REFRESH_MARGIN = timedelta(minutes=5)


class CredentialCache:
    """
    In-memory holder for the backend bearer token.

    Owned by exactly one KlacksApiClient. Not persisted and never shared
    between processes.

    Example:
        >>> cache = CredentialCache()
        >>> cache.set("abc", datetime.now(UTC) + timedelta(hours=1))
        >>> cache.is_valid()
        True
    """

    def __init__(self, margin: timedelta = DEFAULT_REFRESH_MARGIN) -> None:
        self._margin = margin
        self._token: str | None = None
        self._expiry: datetime | None = None

    @property
    def token(self) -> str | None:
        """Return the cached token, or None when nothing is cached."""
        return self._token

    @property
    def expiry(self) -> datetime | None:
        """Return the expiry of the cached token."""
        return self._expiry

    @property
    def margin(self) -> timedelta:
        """Return the safety margin applied before expiry."""
        return self._margin

    def is_valid(self, now: datetime | None = None) -> bool:
        """
        Check whether the cached token may still be used.

        Args:
            now: Reference time (timezone-aware). Defaults to the current UTC time.

        Returns:
            True iff a token is present and now < expiry - margin.
        """
        if self._token is None or self._expiry is None:
            return False
        if now is None:
            now = datetime.now(UTC)
        return now < self._expiry - self._margin

    def set(self, token: str, expiry: datetime) -> None:
        """
        Replace the cached credential.

        Naive expiry timestamps are interpreted as UTC.
        """
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=UTC)
        self._token = token
        self._expiry = expiry

    def clear(self) -> None:
        """Drop the cached credential."""
        self._token = None
        self._expiry = None
