"""Service account identity loading from the base64 environment blob."""
from __future__ import annotations

import base64
import binascii
import json
import logging

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .errors import ConfigurationError, KeyFormatError

logger = logging.getLogger(__name__)

KEY_ENV_VAR = "GOOGLE_SERVICE_ACCOUNT_KEY_BASE64"


class ServiceIdentity(BaseModel):
    """Non-human identity used for the JWT-bearer grant."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    client_email: str
    private_key: str
    token_uri: str

    @field_validator("client_email", "private_key", "token_uri")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    @field_validator("private_key")
    @classmethod
    def unescape_newlines(cls, v: str) -> str:
        # Keys pasted through env tooling often carry literal "\n" sequences
        return v.replace("\\n", "\n")


def _decode_blob(key_b64: str) -> str:
    try:
        raw = base64.b64decode(key_b64.strip(), validate=False)
        text = raw.decode("utf-8")
    except (binascii.Error, ValueError) as e:
        raise KeyFormatError(f"Service account key is not valid base64/UTF-8: {e}") from e
    return text.strip().lstrip("\ufeff").strip()


def load_service_identity(key_b64: str | None) -> ServiceIdentity:
    """Decode and validate the service account key.

    Args:
        key_b64: Base64-encoded service account JSON, usually from the
            GOOGLE_SERVICE_ACCOUNT_KEY_BASE64 environment variable

    Returns:
        ServiceIdentity with client email, PEM private key and token endpoint

    Raises:
        ConfigurationError: If the key is absent
        KeyFormatError: If the blob is not base64-encoded JSON with the
            required fields
    """
    if not key_b64 or not key_b64.strip():
        logger.error(f"Missing env: {KEY_ENV_VAR}")
        raise ConfigurationError(f"{KEY_ENV_VAR} is not set")

    json_str = _decode_blob(key_b64)

    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid service account JSON: {e.msg} at position {e.pos}")
        raise KeyFormatError(f"Service account key is not valid JSON: {e.msg}") from e

    if not isinstance(data, dict):
        raise KeyFormatError("Service account key must be a JSON object")

    try:
        return ServiceIdentity.model_validate(data)
    except ValidationError as e:
        fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err["loc"])
        logger.error(f"Service account key missing or invalid fields: {fields}")
        raise KeyFormatError(f"Service account key has missing or invalid fields: {fields}") from e
