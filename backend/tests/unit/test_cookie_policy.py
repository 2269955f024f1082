"""Unit tests for session cookie attribute policy."""

import pytest

from app.services.cookie_policy import CookieOptions, CookiePolicy


MAX_AGE = 30 * 24 * 3600


@pytest.mark.unit
class TestCookieDomain:
    """Test domain attribute derivation."""

    def test_no_domain_outside_production(self):
        policy = CookiePolicy("development", "https://app.example.com", MAX_AGE)

        assert policy.cookie_domain() is None

    def test_domain_in_production(self):
        policy = CookiePolicy("production", "https://app.example.com", MAX_AGE)

        assert policy.cookie_domain() == "app.example.com"

    @pytest.mark.parametrize("app_url", [
        "http://localhost:3000",
        "http://127.0.0.1:8000",
        "http://10.0.0.5",
        "http://[::1]:8000",
    ])
    def test_no_domain_for_local_hosts(self, app_url):
        """Test localhost and IP literals never get a domain attribute."""
        policy = CookiePolicy("production", app_url, MAX_AGE)

        assert policy.cookie_domain() is None

    def test_no_domain_without_app_url(self):
        policy = CookiePolicy("production", "", MAX_AGE)

        assert policy.cookie_domain() is None


@pytest.mark.unit
class TestCookieOptions:
    """Test set/delete option symmetry."""

    def test_development_options(self):
        options = CookiePolicy("development", "http://localhost:3000", MAX_AGE).build_set_options()

        assert options.path == "/"
        assert options.httponly is True
        assert options.secure is False
        assert options.samesite == "lax"
        assert options.domain is None
        assert options.max_age == MAX_AGE

    def test_production_options_are_secure(self):
        options = CookiePolicy("production", "https://app.example.com", MAX_AGE).build_set_options()

        assert options.secure is True
        assert options.domain == "app.example.com"

    def test_delete_options_match_set_options(self):
        """Test deletion targets the same attributes the cookie was set with."""
        policy = CookiePolicy("production", "https://app.example.com", MAX_AGE)
        set_options = policy.build_set_options()
        delete_options = policy.build_delete_options()

        assert delete_options.max_age is None
        assert set_options.delete_kwargs() == delete_options.delete_kwargs()

    def test_set_kwargs_include_max_age(self):
        kwargs = CookieOptions(max_age=60).set_kwargs()

        assert kwargs["max_age"] == 60

    def test_delete_kwargs_have_no_max_age(self):
        assert "max_age" not in CookieOptions(max_age=60).delete_kwargs()

    def test_without_domain(self):
        options = CookieOptions(domain="app.example.com", secure=True)
        stripped = options.without_domain()

        assert stripped.domain is None
        assert stripped.secure is True
        assert options.domain == "app.example.com"

    def test_from_settings(self, test_settings):
        policy = CookiePolicy.from_settings(test_settings)

        assert policy.max_age == test_settings.session_max_age_seconds
        assert policy.is_production is False
