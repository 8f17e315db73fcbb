"""Captcha verification for the login form."""

from app.infrastructure.external.captcha.turnstile import TurnstileVerifier

__all__ = ["TurnstileVerifier"]
