from __future__ import annotations

import asyncio
import base64
import json
import logging
import threading
from dataclasses import dataclass
from functools import partial
from typing import Any, Dict, Optional, Protocol

import jwt
import requests
from fastapi import Request

from photogram.core.errors import Timeout, Unauthorized, Unavailable
from photogram.core.settings import S, Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    uid: str
    email: Optional[str] = None


class IdentityGateway(Protocol):
    def verify(self, token: str) -> Identity:
        ...


class CognitoIdentityGateway:
    """Verifies Cognito-issued RS256 JWTs against the user pool JWKS."""

    def __init__(self, settings: Settings = S) -> None:
        self._settings = settings
        self._jwks: Optional[Dict[str, Any]] = None
        self._jwks_lock = threading.Lock()

    @property
    def issuer(self) -> str:
        region = self._settings.cognito_region or self._settings.aws_region
        return f"https://cognito-idp.{region}.amazonaws.com/{self._settings.cognito_user_pool_id}"

    def _fetch_jwks(self) -> Dict[str, Any]:
        url = f"{self.issuer}/.well-known/jwks.json"
        try:
            resp = requests.get(url, timeout=self._settings.identity_timeout_seconds)
            resp.raise_for_status()
            return resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise Unavailable("Identity provider unavailable") from exc

    def _resolve_key(self, kid: str) -> Dict[str, Any]:
        with self._jwks_lock:
            if self._jwks is None:
                self._jwks = self._fetch_jwks()
            keys = self._jwks.get("keys", [])
        for key in keys:
            if key.get("kid") == kid:
                return key
        # Keys rotate; drop the cache so the next request refetches.
        with self._jwks_lock:
            self._jwks = None
        raise Unauthorized("Unauthorized: Unknown signing key")

    def decode(self, token: str) -> Dict[str, Any]:
        try:
            header = jwt.get_unverified_header(token)
        except jwt.PyJWTError as exc:
            raise Unauthorized("Unauthorized: Invalid token format") from exc

        key = self._resolve_key(header.get("kid", ""))
        public_key = jwt.algorithms.RSAAlgorithm.from_jwk(json.dumps(key))
        try:
            payload = jwt.decode(
                token,
                public_key,
                algorithms=["RS256"],
                audience=self._settings.cognito_app_client_id,
                issuer=self.issuer,
            )
        except jwt.ExpiredSignatureError as exc:
            raise Unauthorized("Unauthorized: Invalid or expired token") from exc
        except jwt.PyJWTError as exc:
            raise Unauthorized("Unauthorized: Invalid or expired token") from exc

        expected_use = self._settings.cognito_expected_token_use
        if expected_use and payload.get("token_use") != expected_use:
            raise Unauthorized("Unauthorized: Unexpected token use")
        return payload

    def verify(self, token: str) -> Identity:
        payload = self.decode(token)
        uid = payload.get("sub") or payload.get("cognito:username") or payload.get("username")
        if not uid:
            raise Unauthorized("Unauthorized: Token missing subject")
        return Identity(uid=str(uid), email=payload.get("email"))


def _decode_jwt_payload(token: str) -> Optional[Dict[str, Any]]:
    if token.count(".") != 2:
        return None
    _, payload, _ = token.split(".", 2)
    if not payload:
        return None
    padding = "=" * (-len(payload) % 4)
    try:
        decoded = base64.urlsafe_b64decode(payload + padding)
        data = json.loads(decoded.decode("utf-8"))
    except (ValueError, json.JSONDecodeError, UnicodeDecodeError):
        return None
    return data if isinstance(data, dict) else None


class DevIdentityGateway:
    """
    Development only: trusts the ``sub`` claim of an unverified JWT, or
    treats the raw bearer value as the user id.
    """

    def verify(self, token: str) -> Identity:
        data = _decode_jwt_payload(token) or {}
        sub = data.get("sub")
        if isinstance(sub, str) and sub.strip():
            return Identity(uid=sub, email=data.get("email"))
        return Identity(uid=token)


def build_identity_gateway(settings: Settings = S) -> IdentityGateway:
    if settings.cognito_enabled:
        return CognitoIdentityGateway(settings)
    if settings.dev_mode:
        logger.warning("Cognito not configured; using unverified development identity gateway")
        return DevIdentityGateway()
    raise RuntimeError("COGNITO_USER_POOL_ID and COGNITO_APP_CLIENT_ID are required outside DEV_MODE")


def extract_bearer_token(auth_header: Optional[str]) -> str:
    if not auth_header:
        raise Unauthorized("Unauthorized: No token provided")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer":
        raise Unauthorized("Unauthorized: No token provided")
    if not token.strip():
        raise Unauthorized("Unauthorized: Invalid token format")
    return token.strip()


async def verify_token(gateway: IdentityGateway, token: str, timeout_seconds: float) -> Identity:
    loop = asyncio.get_running_loop()
    try:
        return await asyncio.wait_for(
            loop.run_in_executor(None, partial(gateway.verify, token)),
            timeout=timeout_seconds,
        )
    except asyncio.TimeoutError as exc:
        raise Timeout("Identity provider timed out") from exc


async def get_identity(request: Request) -> Identity:
    state = request.app.state
    token = extract_bearer_token(request.headers.get("authorization"))
    return await verify_token(state.identity, token, state.settings.identity_timeout_seconds)


async def get_optional_identity(request: Request) -> Optional[Identity]:
    if not request.headers.get("authorization"):
        return None
    try:
        return await get_identity(request)
    except Unauthorized:
        return None
    except Unavailable as exc:
        logger.warning("identity provider unavailable; serving anonymously: %s", exc)
        return None
