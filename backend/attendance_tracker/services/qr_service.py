"""QR token encoding, verification and image rendering.

Wire format: standard base64 of compact JSON ``{"s", "t", "n", "e", "h"}``
where ``s`` is the session id, ``t`` the issue time in unix seconds, ``n`` a
random hex nonce, ``e`` an advisory expiry and ``h`` a truncated
HMAC-SHA256 over ``s + t + n``. Freshness is always computed from ``t``;
``e`` is never trusted.
"""
import base64
import binascii
import hashlib
import hmac
import io
import json
import secrets
from dataclasses import dataclass
from typing import Optional

import qrcode

from attendance_tracker.utils.clock import utcnow, to_unix

MAX_TOKEN_LENGTH = 1024
NONCE_BYTES = 8

class TokenError(Exception):
    """Base class for rejected QR tokens."""
    reason = 'invalid_token'

class MalformedToken(TokenError):
    """Token is not base64 JSON or lacks required fields."""
    reason = 'malformed_token'

class IntegrityFailure(TokenError):
    """Token digest does not match its contents."""
    reason = 'integrity_failure'

class ExpiredToken(TokenError):
    """Token is older than the freshness window."""
    reason = 'expired_token'

class EncodingFailure(Exception):
    """QR image could not be rendered."""
    reason = 'encoding_failure'

@dataclass(frozen=True)
class QRTokenPayload:
    """Verified contents of a scanned token."""
    session_id: str
    issued_at: int
    nonce: str
    digest: str
    expires_at: Optional[int] = None

@dataclass(frozen=True)
class EncodedToken:
    """Freshly issued token plus its rendered image."""
    token: str
    qr_image_data: str
    issued_at: int
    expires_at: int

class QRTokenCodec:
    """Signs, verifies and renders attendance QR tokens."""

    def __init__(
        self,
        signing_key: str,
        validity_seconds: int = 180,
        freshness_seconds: int = 300,
        hash_length: int = 16,
        clock_skew_seconds: int = 30
    ):
        if not signing_key:
            raise ValueError("QR signing key must not be empty")
        self._key = signing_key.encode() if isinstance(signing_key, str) else signing_key
        self.validity_seconds = validity_seconds
        self.freshness_seconds = freshness_seconds
        self.hash_length = hash_length
        self.clock_skew_seconds = clock_skew_seconds

    @classmethod
    def from_config(cls, config) -> 'QRTokenCodec':
        """Build a codec from a Flask config mapping."""
        return cls(
            signing_key=config.get('QR_SIGNING_KEY') or config['SECRET_KEY'],
            validity_seconds=config.get('QR_CODE_VALIDITY_SECONDS', 180),
            freshness_seconds=config.get('QR_TOKEN_FRESHNESS_SECONDS', 300),
            hash_length=config.get('QR_TOKEN_HASH_LENGTH', 16),
            clock_skew_seconds=config.get('QR_TOKEN_CLOCK_SKEW_SECONDS', 30)
        )

    def sign(self, session_id: str, issued_at: int, nonce: str) -> str:
        """Truncated keyed digest over ``s + t + n``."""
        message = f"{session_id}{issued_at}{nonce}".encode()
        return hmac.new(self._key, message, hashlib.sha256).hexdigest()[:self.hash_length]

    def build_token(self, session_id, now: int = None) -> QRTokenPayload:
        """Create a signed payload without rendering it."""
        session_id = str(session_id)
        if not session_id:
            raise ValueError("session_id is required")

        issued_at = to_unix(utcnow()) if now is None else int(now)
        nonce = secrets.token_hex(NONCE_BYTES)

        return QRTokenPayload(
            session_id=session_id,
            issued_at=issued_at,
            nonce=nonce,
            digest=self.sign(session_id, issued_at, nonce),
            expires_at=issued_at + self.validity_seconds
        )

    @staticmethod
    def serialize(payload: QRTokenPayload) -> str:
        """Compact JSON, then base64."""
        data = {
            's': payload.session_id,
            't': payload.issued_at,
            'n': payload.nonce,
            'e': payload.expires_at,
            'h': payload.digest
        }
        if payload.expires_at is None:
            del data['e']

        raw = json.dumps(data, separators=(',', ':'))
        return base64.b64encode(raw.encode()).decode('ascii')

    def encode(self, session_id, now: int = None) -> EncodedToken:
        """Issue a new token for a session and render it as a QR image."""
        payload = self.build_token(session_id, now=now)
        token = self.serialize(payload)

        return EncodedToken(
            token=token,
            qr_image_data=self.render_image(token),
            issued_at=payload.issued_at,
            expires_at=payload.expires_at
        )

    def decode(self, token: str, now: int = None) -> QRTokenPayload:
        """Parse and verify an untrusted token.

        Raises MalformedToken, IntegrityFailure or ExpiredToken.
        """
        if not isinstance(token, str):
            raise MalformedToken("Token must be a string")

        token = token.strip()
        if not token or len(token) > MAX_TOKEN_LENGTH:
            raise MalformedToken("Token is empty or too long")

        try:
            raw = base64.b64decode(token, validate=True)
        except (binascii.Error, ValueError):
            raise MalformedToken("Token is not valid base64")

        # Reject alternative encodings of the same bytes
        if base64.b64encode(raw).decode('ascii') != token:
            raise MalformedToken("Token is not canonical base64")

        try:
            data = json.loads(raw.decode('utf-8'))
        except (UnicodeDecodeError, ValueError):
            raise MalformedToken("Token is not valid JSON")

        payload = self._parse_fields(data)

        expected = self.sign(payload.session_id, payload.issued_at, payload.nonce)
        if not payload.digest.isascii() or not hmac.compare_digest(expected, payload.digest):
            raise IntegrityFailure("Token digest mismatch")

        now = to_unix(utcnow()) if now is None else int(now)

        if payload.issued_at > now + self.clock_skew_seconds:
            raise IntegrityFailure("Token issued in the future")

        if now - payload.issued_at > self.freshness_seconds:
            raise ExpiredToken("QR code has expired")

        return payload

    @staticmethod
    def _parse_fields(data) -> QRTokenPayload:
        if not isinstance(data, dict):
            raise MalformedToken("Token payload must be an object")

        for field in ('s', 't', 'n', 'h'):
            if field not in data:
                raise MalformedToken(f"Missing field: {field}")

        session_id, issued_at, nonce, digest = data['s'], data['t'], data['n'], data['h']
        expires_at = data.get('e')

        if not isinstance(session_id, str) or not session_id:
            raise MalformedToken("Invalid field: s")
        # bool is an int subclass
        if not isinstance(issued_at, int) or isinstance(issued_at, bool):
            raise MalformedToken("Invalid field: t")
        if not isinstance(nonce, str) or not nonce:
            raise MalformedToken("Invalid field: n")
        if not isinstance(digest, str) or not digest:
            raise MalformedToken("Invalid field: h")
        if expires_at is not None and (not isinstance(expires_at, int) or isinstance(expires_at, bool)):
            raise MalformedToken("Invalid field: e")

        return QRTokenPayload(
            session_id=session_id,
            issued_at=issued_at,
            nonce=nonce,
            digest=digest,
            expires_at=expires_at
        )

    @staticmethod
    def render_image(data: str) -> str:
        """Render data as a PNG data URL with high error correction."""
        try:
            qr = qrcode.QRCode(
                version=None,  # Auto-determine size
                error_correction=qrcode.constants.ERROR_CORRECT_H,
                box_size=10,
                border=4,
            )
            qr.add_data(data)
            qr.make(fit=True)

            img = qr.make_image(fill_color="black", back_color="white")

            buffered = io.BytesIO()
            img.save(buffered, format="PNG")
        except Exception as e:
            raise EncodingFailure(f"Error generating QR code: {e}") from e

        img_str = base64.b64encode(buffered.getvalue()).decode()
        return f"data:image/png;base64,{img_str}"
