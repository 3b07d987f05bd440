"""
Data models for the artist_sync package.
"""
from dataclasses import dataclass, field
from typing import Any, List, Optional

from .exceptions import TokenExchangeError


@dataclass
class Artist:
    """Represents an artist row in the local catalog."""

    name: str
    playcount: int
    seed: str = ""

    @property
    def is_seeded(self) -> bool:
        """Whether a catalog identifier was resolved for this artist."""
        return bool(self.seed)

    def __str__(self) -> str:
        return f"{self.name} ({self.playcount} plays)"


@dataclass
class TokenResponse:
    """Parsed body of a successful token endpoint response."""

    access_token: str
    expires_in: int
    refresh_token: Optional[str] = None
    token_type: str = "Bearer"
    scope: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "TokenResponse":
        """
        Build a TokenResponse from decoded JSON.

        Raises:
            TokenExchangeError: If required fields are missing or mistyped
        """
        if not isinstance(payload, dict):
            raise TokenExchangeError("Token response is not a JSON object")

        access_token = payload.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise TokenExchangeError("Token response has no access_token")

        expires_in = payload.get("expires_in")
        # bool is an int subclass
        if (
            isinstance(expires_in, bool)
            or not isinstance(expires_in, int)
            or expires_in < 0
        ):
            raise TokenExchangeError(
                f"Token response has invalid expires_in: {expires_in!r}"
            )

        refresh_token = payload.get("refresh_token")
        if refresh_token is not None and not isinstance(refresh_token, str):
            raise TokenExchangeError("Token response has invalid refresh_token")

        return cls(
            access_token=access_token,
            expires_in=expires_in,
            refresh_token=refresh_token or None,
            token_type=payload.get("token_type", "Bearer"),
            scope=payload.get("scope"),
        )


@dataclass
class PageReport:
    """Counters for one processed page. Owned by a single worker."""

    page: int
    added: int = 0
    updated: int = 0
    unchanged: int = 0
    skipped: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return self.added + self.updated + self.unchanged


@dataclass
class ReconcileResult:
    """Represents the result of a reconciliation run."""

    total_pages: int = 0
    failed_pages: int = 0
    added: int = 0
    updated: int = 0
    unchanged: int = 0
    skipped: int = 0
    failed: int = 0
    errors: Optional[List[str]] = None

    def __post_init__(self) -> None:
        if self.errors is None:
            self.errors = []

    @property
    def writes(self) -> int:
        """Number of store writes performed during the run."""
        return self.added + self.updated

    @property
    def processed(self) -> int:
        return self.added + self.updated + self.unchanged

    @property
    def success(self) -> bool:
        """True when every page completed."""
        return self.failed_pages == 0

    def merge(self, report: PageReport) -> None:
        """Fold a page report into the run totals."""
        self.added += report.added
        self.updated += report.updated
        self.unchanged += report.unchanged
        self.skipped += report.skipped
        self.failed += report.failed
        self.errors.extend(report.errors)

    def record_page_failure(self, message: str) -> None:
        self.failed_pages += 1
        self.errors.append(message)

    def __str__(self) -> str:
        return (
            f"Reconcile Result: {self.added} added, {self.updated} updated, "
            f"{self.unchanged} unchanged, {self.skipped} skipped, "
            f"{self.failed} failed across {self.total_pages} pages "
            f"({self.failed_pages} failed)"
        )
