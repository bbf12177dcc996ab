"""JWT verification for Supabase access tokens.

Supabase signs with the project's shared secret (HS256) or, on projects
with asymmetric signing keys, with RS256/ES256 keys published via JWKS.
"""

import base64
from typing import Any, Dict, Optional

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from pydantic import BaseModel

from app.core.config import settings
from app.core.jwks import JWKKey, JWKSService, jwks_service
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

AUDIENCE = "authenticated"

_EC_CURVES = {
    "P-256": ec.SECP256R1,
    "P-384": ec.SECP384R1,
    "P-521": ec.SECP521R1,
}


class JWTClaims(BaseModel):
    """Decoded JWT claims from Supabase."""

    sub: str
    email: Optional[str] = None
    role: str = "authenticated"
    exp: int
    iat: int
    iss: str
    aud: Any = None
    app_metadata: Optional[Dict[str, Any]] = None
    user_metadata: Optional[Dict[str, Any]] = None
    session_id: Optional[str] = None


def _b64url_int(value: str) -> int:
    padded = value + "=" * (-len(value) % 4)
    return int.from_bytes(base64.urlsafe_b64decode(padded), byteorder="big")


class JWTVerifier:
    """Verifies signature, expiry, audience and issuer of access tokens."""

    def __init__(self, supabase_url: str, jwt_secret: str = "", keys: JWKSService = jwks_service):
        """Initialize JWT verifier.

        Args:
            supabase_url: Supabase project URL for issuer validation
            jwt_secret: Supabase JWT secret for HS256 verification
            keys: JWKS source for asymmetric tokens
        """
        self.supabase_url = supabase_url.rstrip("/")
        self.expected_issuer = f"{self.supabase_url}/auth/v1"
        self.jwt_secret = jwt_secret
        self.keys = keys

    async def verify_token(self, token: str) -> JWTClaims:
        """Verify and decode a Supabase JWT token.

        Raises:
            jwt.InvalidTokenError: If the token is malformed, expired, or fails any check
        """
        try:
            header = jwt.get_unverified_header(token)
        except jwt.DecodeError as e:
            raise jwt.InvalidTokenError("Malformed token") from e

        alg = header.get("alg")
        if alg == "HS256":
            if not self.jwt_secret:
                raise jwt.InvalidTokenError("HS256 token received but SUPABASE_JWT_SECRET is not configured")
            key: Any = self.jwt_secret
        elif alg in ("RS256", "ES256"):
            kid = header.get("kid")
            if not kid:
                raise jwt.InvalidTokenError("JWT header missing 'kid' (key ID)")
            try:
                jwk_key = await self.keys.get_key(kid)
            except RuntimeError as e:
                raise jwt.InvalidTokenError(f"Signing keys unavailable: {e}") from e
            if jwk_key is None:
                raise jwt.InvalidTokenError(f"No matching key found for kid: {kid}")
            key = self._public_key_pem(jwk_key)
        else:
            raise jwt.InvalidTokenError(f"Unsupported algorithm: {alg}")

        try:
            payload = jwt.decode(
                token,
                key,
                algorithms=[alg],
                audience=AUDIENCE,
                issuer=self.expected_issuer,
                options={"require": ["sub", "exp", "iat", "iss"]},
            )
        except jwt.ExpiredSignatureError as e:
            LOGGER.warning(f"Token expired: {e}")
            raise jwt.InvalidTokenError("Token has expired") from e
        except jwt.InvalidIssuerError as e:
            LOGGER.warning(f"Invalid issuer: {e}")
            raise jwt.InvalidTokenError("Invalid token issuer") from e

        return JWTClaims(**payload)

    def _public_key_pem(self, jwk_key: JWKKey) -> str:
        """Convert an RSA or EC JWK into a PEM public key for PyJWT.

        Raises:
            jwt.InvalidTokenError: If the key type or curve is unsupported
        """
        try:
            if jwk_key.kty == "RSA":
                public_key = rsa.RSAPublicNumbers(
                    _b64url_int(jwk_key.e), _b64url_int(jwk_key.n)
                ).public_key()
            elif jwk_key.kty == "EC":
                curve = _EC_CURVES.get(jwk_key.crv or "")
                if curve is None:
                    raise ValueError(f"Unsupported curve: {jwk_key.crv}")
                public_key = ec.EllipticCurvePublicNumbers(
                    x=_b64url_int(jwk_key.x), y=_b64url_int(jwk_key.y), curve=curve()
                ).public_key()
            else:
                raise ValueError(f"Unsupported key type: {jwk_key.kty}")
        except (TypeError, ValueError) as e:
            raise jwt.InvalidTokenError(f"Failed to load signing key: {e}") from e

        pem = public_key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        return pem.decode("utf-8")


jwt_verifier = JWTVerifier(
    supabase_url=settings.supabase_url,
    jwt_secret=settings.supabase_jwt_secret,
)
