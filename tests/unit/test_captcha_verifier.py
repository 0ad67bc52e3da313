"""CAPTCHA verification against a mocked siteverify endpoint."""

from __future__ import annotations

from urllib.parse import parse_qs

import httpx
import pytest
from starlette.requests import Request

from fgd.captcha.verifier import CaptchaError, CaptchaVerifier

VERIFY_URL = "https://recaptcha.test/siteverify"


def _verifier(handler, **kwargs) -> CaptchaVerifier:
    return CaptchaVerifier(
        secret_key=kwargs.pop("secret_key", "server-secret"),
        verify_url=VERIFY_URL,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def _request(ip: str = "203.0.113.9") -> Request:
    return Request({"type": "http", "method": "POST", "path": "/", "headers": [], "client": (ip, 40000)})


class TestVerify:
    """Test siteverify outcomes."""

    @pytest.mark.asyncio
    async def test_success_sends_secret_token_and_ip(self):
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update({k: v[0] for k, v in parse_qs(request.content.decode()).items()})
            return httpx.Response(200, json={"success": True, "score": 0.9})

        result = await _verifier(handler).verify("client-token", "203.0.113.9")

        assert result.success is True
        assert result.score == 0.9
        assert seen == {"secret": "server-secret", "response": "client-token", "remoteip": "203.0.113.9"}

    @pytest.mark.asyncio
    async def test_rejected_token(self):
        def handler(_request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"success": False, "error-codes": ["invalid-input-response"]})

        result = await _verifier(handler).verify("bad-token")
        assert result.success is False
        assert result.error_codes == ["invalid-input-response"]

    @pytest.mark.asyncio
    async def test_missing_token_skips_network(self):
        def handler(_request: httpx.Request) -> httpx.Response:
            raise AssertionError("siteverify should not be called")

        result = await _verifier(handler).verify(None)
        assert result.error_codes == ["missing-token"]

    @pytest.mark.asyncio
    async def test_missing_secret(self):
        def handler(_request: httpx.Request) -> httpx.Response:
            raise AssertionError("siteverify should not be called")

        result = await _verifier(handler, secret_key="").verify("client-token")
        assert result.success is False
        assert result.error_codes == ["configuration-error"]

    @pytest.mark.asyncio
    async def test_upstream_error(self):
        def handler(_request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="unavailable")

        result = await _verifier(handler).verify("client-token")
        assert result.success is False
        assert result.error_codes == ["verification-error"]

    @pytest.mark.asyncio
    async def test_disabled_always_passes(self):
        def handler(_request: httpx.Request) -> httpx.Response:
            raise AssertionError("siteverify should not be called")

        result = await _verifier(handler, enabled=False).verify(None)
        assert result.success is True


class TestRequire:
    """Test the raising helper used by routes."""

    @pytest.mark.asyncio
    async def test_raises_captcha_error(self):
        def handler(_request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"success": False, "error-codes": ["timeout-or-duplicate"]})

        with pytest.raises(CaptchaError) as exc_info:
            await _verifier(handler).require("client-token", _request())

        assert str(exc_info.value) == "CAPTCHA verification failed. Please try again."
        assert exc_info.value.error_codes == ["timeout-or-duplicate"]

    @pytest.mark.asyncio
    async def test_passes_client_ip(self):
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update({k: v[0] for k, v in parse_qs(request.content.decode()).items()})
            return httpx.Response(200, json={"success": True})

        await _verifier(handler).require("client-token", _request("198.51.100.4"))
        assert seen["remoteip"] == "198.51.100.4"
