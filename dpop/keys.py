import json
from typing import Any, Dict, Union

from jwcrypto import jwk
from jwcrypto.common import JWException

KeyInput = Union[jwk.JWK, str, Dict[str, Any]]


def load_jwk(value: KeyInput) -> jwk.JWK:
    """
    Coerce a caller-supplied key into a JWK.

    Accepts a jwcrypto JWK, a JWK JSON string, or a JWK dict.

    Raises:
        ValueError: If the value cannot be read as a JWK.
    """
    if isinstance(value, jwk.JWK):
        return value
    try:
        if isinstance(value, str):
            return jwk.JWK.from_json(value)
        if isinstance(value, dict):
            return jwk.JWK(**value)
    except (JWException, ValueError, TypeError) as e:
        raise ValueError(f"Invalid JWK: {e}") from e
    raise ValueError(f"Invalid JWK: unsupported type {type(value).__name__}")


def key_type(key: jwk.JWK) -> str:
    """Returns the kty member of a JWK."""
    return key.get("kty")


def public_jwk_dict(key: jwk.JWK) -> Dict[str, Any]:
    """Returns the public members of a JWK as a dict."""
    return json.loads(key.export_public())
