"""
Tests for settings, logging setup and rate limit helpers
"""

import logging
import os
from datetime import timedelta
from logging.handlers import RotatingFileHandler
from unittest.mock import Mock, patch

from starlette.requests import Request
from slowapi.errors import RateLimitExceeded

from pagecast.core.config import Settings, validate_settings
from pagecast.core.logging_config import setup_logging
from pagecast.core.rate_limit_config import (
    RATE_LIMIT_MESSAGE,
    create_limiter,
    get_real_ip,
    rate_limit_exceeded_handler,
)


def make_request(headers=None, client=("10.0.0.9", 5000)):
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/s/room",
        "query_string": b"",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
        "server": ("testserver", 80),
        "scheme": "http",
    }
    return Request(scope)


class TestSettings:

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.HOST == "0.0.0.0"
        assert settings.PORT == 8080
        assert settings.session_ttl == timedelta(hours=24)
        assert settings.SWEEP_INTERVAL_SECONDS == 3600
        assert settings.MAX_ID_LENGTH == 100
        assert settings.MAX_PAYLOAD_BYTES == 1_000_000
        assert settings.RATE_LIMIT_ENABLED is False

    def test_environment_overrides(self):
        with patch.dict(os.environ, {"PAGECAST_PORT": "9999", "PAGECAST_SESSION_TTL_SECONDS": "60"}):
            settings = Settings(_env_file=None)

        assert settings.PORT == 9999
        assert settings.session_ttl == timedelta(seconds=60)

    def test_validate_settings_accepts_defaults(self):
        assert validate_settings(Settings(_env_file=None)) is True

    def test_validate_settings_flags_bad_values(self, caplog):
        settings = Settings(_env_file=None, SESSION_TTL_SECONDS=0, SWEEP_INTERVAL_SECONDS=-1)

        with caplog.at_level(logging.WARNING):
            assert validate_settings(settings) is False

        assert "SESSION_TTL_SECONDS" in caplog.text
        assert "SWEEP_INTERVAL_SECONDS" in caplog.text


class TestLogging:

    def test_file_handler_disabled_with_empty_log_dir(self):
        with patch.dict(os.environ, {"LOG_DIR": ""}):
            root = setup_logging()

        assert not any(isinstance(h, RotatingFileHandler) for h in root.handlers)

    def test_file_handler_attached_once(self, tmp_path):
        root = logging.getLogger()
        before = list(root.handlers)
        try:
            with patch.dict(os.environ, {"LOG_DIR": str(tmp_path)}):
                setup_logging()
                setup_logging()

            file_handlers = [h for h in root.handlers if isinstance(h, RotatingFileHandler)]
            assert len(file_handlers) == 1
            assert (tmp_path / "pagecast.log").exists()
        finally:
            for handler in root.handlers[:]:
                if handler not in before:
                    root.removeHandler(handler)
                    handler.close()


class TestRateLimitHelpers:

    def test_real_ip_prefers_forwarded_for(self):
        request = make_request({"X-Forwarded-For": "1.2.3.4, 10.0.0.1", "X-Real-IP": "5.6.7.8"})

        assert get_real_ip(request) == "1.2.3.4"

    def test_real_ip_falls_back_to_real_ip_header(self):
        assert get_real_ip(make_request({"X-Real-IP": "5.6.7.8"})) == "5.6.7.8"

    def test_real_ip_falls_back_to_peer(self):
        assert get_real_ip(make_request()) == "10.0.0.9"

    def test_limiter_disabled_by_default(self):
        assert create_limiter().enabled is False
        assert create_limiter(enabled=True).enabled is True

    def test_exceeded_handler_returns_plain_429(self):
        exc = RateLimitExceeded(Mock(error_message=None, limit="600 per 1 minute"))

        response = rate_limit_exceeded_handler(make_request(), exc)

        assert response.status_code == 429
        assert response.body.decode() == RATE_LIMIT_MESSAGE
        assert response.headers["Retry-After"] == "60"
