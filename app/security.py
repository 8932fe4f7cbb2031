import base64
import binascii
import os
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from flask import current_app

from app.errors import AuthenticationError

JWT_ALGORITHM = "HS256"
SECRET_BLOB_VERSION = 1


class EncryptionConfigError(RuntimeError):
    pass


def _normalize_key_bytes(raw: str | bytes | None) -> bytes | None:
    if raw is None:
        return None
    if isinstance(raw, bytes):
        return raw if len(raw) == 32 else None

    text = raw.strip()
    if not text:
        return None

    if len(text) == 64:
        try:
            decoded = bytes.fromhex(text)
            if len(decoded) == 32:
                return decoded
        except ValueError:
            pass

    padded = text + ("=" * ((4 - len(text) % 4) % 4))
    for decoder in (base64.urlsafe_b64decode, base64.b64decode):
        try:
            candidate = decoder(padded)
        except (binascii.Error, ValueError):
            continue
        if len(candidate) == 32:
            return candidate
    return None


def validate_encryption_configuration(raw_key: str | bytes | None, required: bool) -> None:
    if required and _normalize_key_bytes(raw_key) is None:
        raise EncryptionConfigError(
            "ENCRYPTION_MASTER_KEY must be set to a 32-byte key (base64/urlsafe-base64/hex)."
        )


def _master_key() -> bytes:
    key = _normalize_key_bytes(current_app.config.get("ENCRYPTION_MASTER_KEY"))
    if key is None:
        raise EncryptionConfigError("ENCRYPTION_MASTER_KEY is required to store API keys.")
    return key


def encryption_enabled() -> bool:
    return _normalize_key_bytes(current_app.config.get("ENCRYPTION_MASTER_KEY")) is not None


def _secret_aad(scope: str, user_id: int) -> bytes:
    return f"fitledger:{scope}:uid:{user_id}:v1".encode("utf-8")


def encrypt_secret_for_user(user_id: int, secret: str, *, scope: str) -> bytes:
    nonce = os.urandom(12)
    ciphertext = AESGCM(_master_key()).encrypt(nonce, secret.encode("utf-8"), _secret_aad(scope, user_id))
    return bytes([SECRET_BLOB_VERSION]) + nonce + ciphertext


def decrypt_secret_for_user(user_id: int, blob: bytes | None, *, scope: str) -> str | None:
    if not blob or len(blob) < 14:
        return None
    if blob[0] != SECRET_BLOB_VERSION:
        return None

    nonce = blob[1:13]
    ciphertext = blob[13:]
    try:
        plaintext = AESGCM(_master_key()).decrypt(nonce, ciphertext, _secret_aad(scope, user_id))
    except InvalidTag:
        current_app.logger.warning("Failed to decrypt %s secret for user_id=%s", scope, user_id)
        return None
    return plaintext.decode("utf-8")


def create_access_token(user_id: int, email: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "email": email,
        "iat": now,
        "exp": now + timedelta(hours=current_app.config["JWT_EXPIRATION_HOURS"]),
    }
    return jwt.encode(payload, current_app.config["JWT_SECRET"], algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    try:
        return jwt.decode(token, current_app.config["JWT_SECRET"], algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError as exc:
        raise AuthenticationError("Token has expired.") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthenticationError("Token is invalid.") from exc
