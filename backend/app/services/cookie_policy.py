"""Session cookie attribute policy.

Set and delete options are derived from the same rules so a deletion
always targets the attribute combination the cookie was set with;
browsers silently ignore a deletion whose path/domain do not match.
"""
import ipaddress
from dataclasses import dataclass, replace
from typing import Optional
from urllib.parse import urlparse

from app.config import Settings


LOCAL_HOSTNAMES = {"localhost", "127.0.0.1"}


@dataclass(frozen=True)
class CookieOptions:
    """Attributes for a Set-Cookie header."""

    path: str = "/"
    httponly: bool = True
    secure: bool = False
    samesite: str = "lax"
    domain: Optional[str] = None
    max_age: Optional[int] = None

    def without_domain(self) -> "CookieOptions":
        """Same options with the domain attribute dropped."""
        return replace(self, domain=None)

    def set_kwargs(self) -> dict:
        """Keyword arguments for ``Response.set_cookie``."""
        kwargs = {
            "path": self.path,
            "httponly": self.httponly,
            "secure": self.secure,
            "samesite": self.samesite,
            "domain": self.domain,
        }
        if self.max_age is not None:
            kwargs["max_age"] = self.max_age
        return kwargs

    def delete_kwargs(self) -> dict:
        """Keyword arguments for ``Response.delete_cookie``."""
        return {
            "path": self.path,
            "httponly": self.httponly,
            "secure": self.secure,
            "samesite": self.samesite,
            "domain": self.domain,
        }


def _is_ip_literal(hostname: str) -> bool:
    try:
        ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return True


class CookiePolicy:
    """Derives session cookie attributes from the runtime environment."""

    def __init__(self, environment: str, app_url: str, max_age: int):
        """
        Initialize cookie policy.

        Args:
            environment: Environment name (production enables secure + domain)
            app_url: Configured public origin of the application
            max_age: Cookie lifetime in seconds when setting
        """
        self.environment = environment
        self.app_url = app_url
        self.max_age = max_age

    @classmethod
    def from_settings(cls, settings: Settings) -> "CookiePolicy":
        return cls(
            environment=settings.ENVIRONMENT,
            app_url=settings.APP_URL,
            max_age=settings.session_max_age_seconds,
        )

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    def cookie_domain(self) -> Optional[str]:
        """
        Domain attribute for the session cookie.

        Only set in production, and never for localhost or raw IP hosts where
        domain-scoped cookies are rejected by browsers.
        """
        if not self.is_production or not self.app_url:
            return None
        hostname = urlparse(self.app_url).hostname
        if not hostname:
            return None
        if hostname in LOCAL_HOSTNAMES or _is_ip_literal(hostname):
            return None
        return hostname

    def _base_options(self) -> CookieOptions:
        return CookieOptions(
            path="/",
            httponly=True,
            secure=self.is_production,
            samesite="lax",
            domain=self.cookie_domain(),
        )

    def build_set_options(self) -> CookieOptions:
        """Options used when issuing the session cookie."""
        return replace(self._base_options(), max_age=self.max_age)

    def build_delete_options(self) -> CookieOptions:
        """Options used when clearing the session cookie."""
        return self._base_options()
