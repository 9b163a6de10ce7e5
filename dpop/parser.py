"""
DPoP Proof Parser - decodes a compact JWS and applies the DPoP format rules.

The parser never checks the signature; it only produces the decoded header,
the typed claims, and the exact bytes the signature covers.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from jwcrypto.jwk import JWK
from jwcrypto.common import JWException, base64url_decode, json_decode

from dpop import config
from dpop.errors import InvalidProofFormatError, ProofParseError

logger = logging.getLogger(__name__)

DPOP_JWT_TYPE = "dpop+jwt"
JTI_CLAIM = "jti"
HTTP_METHOD_CLAIM = "htm"
HTTP_URI_CLAIM = "htu"
ISSUED_AT_CLAIM = "iat"
NONCE_CLAIM = "nonce"
ACCESS_TOKEN_HASH_CLAIM = "ath"

REQUIRED_CLAIMS = (JTI_CLAIM, HTTP_METHOD_CLAIM, HTTP_URI_CLAIM, ISSUED_AT_CLAIM)

# Compact JWS segments use the unpadded URL-safe alphabet only
BASE64URL_SEGMENT = re.compile(r"[A-Za-z0-9_-]*")


@dataclass(frozen=True)
class ParsedProof:
    """A decoded DPoP proof whose signature has not been checked yet."""

    header: Dict[str, Any]
    claims: Dict[str, Any]
    signing_input: bytes
    signature: bytes
    algorithm: str
    jwk: JWK
    jti: str
    http_method: str
    http_uri: str
    issued_at: datetime
    nonce: Optional[str] = None
    access_token_hash: Optional[str] = None


def _invalid(reason: str) -> InvalidProofFormatError:
    logger.debug(f"DPoP proof rejected: {reason}")
    return InvalidProofFormatError(reason)


def _decode_json_segment(segment: str, name: str) -> Dict[str, Any]:
    try:
        decoded = json_decode(base64url_decode(segment))
    except ValueError as e:
        raise ProofParseError(f"Invalid JWS {name}: {e}") from e
    if not isinstance(decoded, dict):
        raise ProofParseError(f"Invalid JWS {name}: not a JSON object")
    return decoded


def split_compact(token: str, max_length: Optional[int] = None):
    """
    Split a compact JWS into its decoded parts.

    Returns:
        Tuple of (header dict, claims dict, signing input bytes, signature bytes).

    Raises:
        ProofParseError: If the token is not a decodable compact JWS.
    """
    limit = config.MAX_PROOF_LENGTH if max_length is None else max_length
    if not isinstance(token, str) or not token:
        raise ProofParseError("DPoP proof must be a non-empty string")
    if len(token) > limit:
        raise ProofParseError(f"DPoP proof exceeds {limit} characters")

    parts = token.split(".")
    if len(parts) != 3:
        raise ProofParseError(f"Invalid JWS: expected 3 segments, got {len(parts)}")
    header_segment, payload_segment, signature_segment = parts
    for name, segment in zip(("header", "payload", "signature"), parts):
        if not BASE64URL_SEGMENT.fullmatch(segment):
            raise ProofParseError(f"Invalid JWS {name}: not base64url encoded")

    header = _decode_json_segment(header_segment, "header")
    claims = _decode_json_segment(payload_segment, "payload")
    try:
        signature = base64url_decode(signature_segment)
        signing_input = f"{header_segment}.{payload_segment}".encode("ascii")
    except ValueError as e:
        raise ProofParseError(f"Invalid JWS signature: {e}") from e

    return header, claims, signing_input, signature


# =============================================================================
# Header Rules
# =============================================================================


def _validate_type(header: Dict[str, Any]) -> None:
    typ = header.get("typ")
    if typ is None:
        raise _invalid("No type specified")
    if typ != DPOP_JWT_TYPE:
        raise _invalid(f"Invalid type={typ} Expected {DPOP_JWT_TYPE}")


def _load_header_jwk(header: Dict[str, Any]) -> JWK:
    jwk_params = header.get("jwk")
    if jwk_params is None:
        raise _invalid("No JWK specified in header")
    if not isinstance(jwk_params, dict):
        raise ProofParseError("Invalid JWK in header: not a JSON object")
    try:
        key = JWK(**jwk_params)
    except (JWException, ValueError, TypeError) as e:
        raise ProofParseError(f"Invalid JWK in header: {e}") from e
    if key.get("kty") == "oct" or key.has_private:
        raise _invalid("JWK in header must not contain private key material")
    return key


def _read_algorithm(header: Dict[str, Any]) -> str:
    alg = header.get("alg")
    if alg is None or alg == "":
        raise _invalid("No JWS algorithm specified in header")
    if not isinstance(alg, str):
        raise _invalid("Invalid JWS algorithm in header")
    return alg


# =============================================================================
# Claim Rules
# =============================================================================


def _assert_claims_exist(claims: Dict[str, Any], *names: str) -> None:
    for name in names:
        if claims.get(name) is None:
            raise _invalid(f"{name} claim not present")


def _string_claim(claims: Dict[str, Any], name: str) -> Optional[str]:
    value = claims.get(name)
    if value is not None and not isinstance(value, str):
        raise _invalid(f"{name} claim must be a string")
    return value


def _issue_time(claims: Dict[str, Any]) -> datetime:
    iat = claims[ISSUED_AT_CLAIM]
    if isinstance(iat, bool) or not isinstance(iat, (int, float)):
        raise _invalid(f"{ISSUED_AT_CLAIM} claim must be a number")
    try:
        return datetime.fromtimestamp(iat, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as e:
        raise _invalid(f"{ISSUED_AT_CLAIM} claim is not a valid timestamp") from e


def parse_proof(token: str, max_length: Optional[int] = None) -> ParsedProof:
    """
    Parse a DPoP proof JWT and validate its format.

    Header rules are applied first (typ, jwk, alg), then the mandatory claims
    are checked one by one so the error names the exact claim missing.

    Args:
        token: The compact JWS from the DPoP HTTP header.
        max_length: Optional override for config.MAX_PROOF_LENGTH.

    Returns:
        ParsedProof with typed fields and the signing input.

    Raises:
        ProofParseError: If the token is not a decodable compact JWS.
        InvalidProofFormatError: If the proof is not RFC 9449 compliant.
    """
    header, claims, signing_input, signature = split_compact(token, max_length)

    _validate_type(header)
    key = _load_header_jwk(header)
    algorithm = _read_algorithm(header)
    # The algorithm is matched against the key family during signature checks

    _assert_claims_exist(claims, *REQUIRED_CLAIMS)

    return ParsedProof(
        header=header,
        claims=claims,
        signing_input=signing_input,
        signature=signature,
        algorithm=algorithm,
        jwk=key,
        jti=_string_claim(claims, JTI_CLAIM),
        http_method=_string_claim(claims, HTTP_METHOD_CLAIM),
        http_uri=_string_claim(claims, HTTP_URI_CLAIM),
        issued_at=_issue_time(claims),
        nonce=_string_claim(claims, NONCE_CLAIM),
        access_token_hash=_string_claim(claims, ACCESS_TOKEN_HASH_CLAIM),
    )
