"""Cross-origin access policy.

Origins are matched exactly; there is no wildcard or subdomain matching. A
request from an origin that is not on the list is still served, it just gets
no access-control headers and the browser enforces the rejection.
"""

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class CorsPolicy:
    allowed_origins: tuple[str, ...]
    allow_credentials: bool = True
    allowed_methods: tuple[str, ...] = ("GET", "POST", "PUT", "DELETE", "OPTIONS")
    allowed_headers: tuple[str, ...] = ("Content-Type", "Authorization", "Accept", "X-Requested-With")

    @classmethod
    def build(cls, origins: Iterable[str], allow_credentials: bool = True,
              methods: Iterable[str] | None = None, headers: Iterable[str] | None = None) -> "CorsPolicy":
        """Build a policy, dropping duplicate origins but keeping their order."""
        kwargs = {}
        if methods is not None:
            kwargs["allowed_methods"] = tuple(m.upper() for m in dict.fromkeys(methods))
        if headers is not None:
            kwargs["allowed_headers"] = tuple(dict.fromkeys(headers))
        return cls(
            allowed_origins=tuple(dict.fromkeys(origins)),
            allow_credentials=allow_credentials,
            **kwargs,
        )

    @classmethod
    def from_settings(cls, settings) -> "CorsPolicy":
        return cls.build(
            settings.CORS_ALLOWED_ORIGINS,
            allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
            methods=settings.CORS_ALLOW_METHODS,
            headers=settings.CORS_ALLOW_HEADERS,
        )


class CorsPolicyEngine:
    """Evaluates a request origin against a CorsPolicy."""

    def __init__(self, policy: CorsPolicy):
        self.policy = policy
        self._origins = frozenset(policy.allowed_origins)

    @property
    def allowed_origins(self) -> list[str]:
        return list(self.policy.allowed_origins)

    def is_allowed(self, origin: str | None) -> bool:
        return bool(origin) and origin in self._origins

    def response_headers(self, origin: str | None) -> dict[str, str]:
        if not self.is_allowed(origin):
            return {}

        headers = {
            "Access-Control-Allow-Origin": origin,
            "Access-Control-Allow-Methods": ", ".join(self.policy.allowed_methods),
            "Access-Control-Allow-Headers": ", ".join(self.policy.allowed_headers),
            "Vary": "Origin",
        }
        if self.policy.allow_credentials:
            headers["Access-Control-Allow-Credentials"] = "true"
        return headers
