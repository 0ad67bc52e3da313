"""reCAPTCHA verification for anonymous-abuse-prone submissions (groups, reviews, reports)."""

from __future__ import annotations

from dataclasses import dataclass, field

import httpx
import structlog
from fastapi import Request

from fgd.config import get_settings
from fgd.middleware.rate_limit import client_identifier

logger = structlog.get_logger()


class CaptchaError(ValueError):
    """Raised when a submission fails CAPTCHA verification (400)."""

    def __init__(self, error_codes: list[str] | None = None) -> None:
        super().__init__("CAPTCHA verification failed. Please try again.")
        self.error_codes = error_codes or []


@dataclass
class CaptchaResult:
    success: bool
    score: float | None = None
    error_codes: list[str] = field(default_factory=list)


class CaptchaVerifier:
    """Checks a client token against the reCAPTCHA siteverify endpoint."""

    def __init__(
        self,
        secret_key: str,
        verify_url: str,
        timeout: float = 5.0,
        enabled: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.secret_key = secret_key
        self.verify_url = verify_url
        self.timeout = timeout
        self.enabled = enabled
        self._transport = transport

    async def verify(self, token: str | None, remote_ip: str | None = None) -> CaptchaResult:
        if not self.enabled:
            return CaptchaResult(success=True)
        if not token:
            return CaptchaResult(success=False, error_codes=["missing-token"])
        if not self.secret_key:
            logger.error("captcha_secret_missing")
            return CaptchaResult(success=False, error_codes=["configuration-error"])

        form = {"secret": self.secret_key, "response": token}
        if remote_ip:
            form["remoteip"] = remote_ip

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                response = await client.post(self.verify_url, data=form)
                response.raise_for_status()
                body = response.json()
        except (httpx.HTTPError, ValueError):
            logger.exception("captcha_verification_failed")
            return CaptchaResult(success=False, error_codes=["verification-error"])

        return CaptchaResult(
            success=bool(body.get("success")),
            score=body.get("score"),
            error_codes=list(body.get("error-codes", [])),
        )

    async def require(self, token: str | None, request: Request) -> None:
        """Raise CaptchaError unless ``token`` verifies for the calling client."""
        result = await self.verify(token, client_identifier(request))
        if not result.success:
            logger.info("captcha_rejected", error_codes=result.error_codes)
            raise CaptchaError(result.error_codes)


def get_captcha_verifier() -> CaptchaVerifier:
    """FastAPI dependency. Tests override it to avoid network calls."""
    settings = get_settings()
    return CaptchaVerifier(
        secret_key=settings.recaptcha_secret_key,
        verify_url=settings.recaptcha_verify_url,
        timeout=settings.recaptcha_timeout_seconds,
        enabled=settings.captcha_enabled,
    )
