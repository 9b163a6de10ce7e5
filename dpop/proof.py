"""
DPoP Proof - the validated, immutable view of a DPoP proof JWT.

A DPoPProof only exists once its format has been validated and its signature
has been verified against the JWK in its own header. Callers use the exposed
claims for replay protection (jti), request binding (htm, htu) and freshness
checks (iat), which are all policy decisions outside this package.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from jwcrypto.jwk import JWK

from dpop.errors import InvalidProofSignatureError, UnsupportedKeyTypeError
from dpop.keys import KeyInput, key_type, load_jwk
from dpop.parser import parse_proof
from dpop.signatures import SignatureCheck, check_signature

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DPoPProof:
    """
    A DPoP proof that passed format validation and its self-signature check.

    Example:
        >>> proof = DPoPProof.parse(request.headers["DPoP"])
        >>> proof.http_method, proof.http_uri
        ('POST', 'https://server.example.com/token')
        >>> proof.is_signed_by(bound_client_key)
        True
    """

    raw_token: str = field(repr=False)
    algorithm: str
    jwk: JWK = field(repr=False)
    jti: str
    http_method: str
    http_uri: str
    issued_at: datetime
    nonce: Optional[str] = None
    access_token_hash: Optional[str] = None
    _signing_input: bytes = field(default=b"", repr=False, compare=False)
    _signature: bytes = field(default=b"", repr=False, compare=False)

    @classmethod
    def parse(cls, token: str, max_length: Optional[int] = None) -> "DPoPProof":
        """
        Parse the DPoP proof JWT and verify it is signed by its header JWK.

        Args:
            token: The compact JWS from the DPoP HTTP header.
            max_length: Optional override for the configured proof length limit.

        Returns:
            The validated DPoPProof.

        Raises:
            ProofParseError: When the JWT cannot be parsed.
            InvalidProofFormatError: When the proof is not RFC 9449 compliant.
            InvalidProofSignatureError: When the proof is not signed by the JWK in the header.
            UnsupportedKeyTypeError: When the header JWK type cannot be verified.
        """
        parsed = parse_proof(token, max_length)

        result = check_signature(
            parsed.jwk, parsed.algorithm, parsed.signing_input, parsed.signature
        )
        if result is SignatureCheck.UNSUPPORTED_KEY_TYPE:
            raise UnsupportedKeyTypeError(key_type(parsed.jwk))
        if result is SignatureCheck.INVALID:
            logger.warning(f"DPoP proof jti={parsed.jti!r} not signed by its header JWK")
            raise InvalidProofSignatureError()

        return cls(
            raw_token=token,
            algorithm=parsed.algorithm,
            jwk=parsed.jwk,
            jti=parsed.jti,
            http_method=parsed.http_method,
            http_uri=parsed.http_uri,
            issued_at=parsed.issued_at,
            nonce=parsed.nonce,
            access_token_hash=parsed.access_token_hash,
            _signing_input=parsed.signing_input,
            _signature=parsed.signature,
        )

    def is_signed_by(self, signing_key: KeyInput) -> bool:
        """
        Check whether this proof is signed by the given key.

        This can be used to detect a proof that is not signed by the key
        bound to the client. A mismatch is a normal False result.

        Args:
            signing_key: JWK (object, JSON string or dict) to check against.

        Returns:
            True if the proof signature verifies with the key, False otherwise.

        Raises:
            UnsupportedKeyTypeError: If the key type cannot be verified at all.
            ValueError: If signing_key is not a valid JWK.
        """
        key = load_jwk(signing_key)
        result = check_signature(key, self.algorithm, self._signing_input, self._signature)
        if result is SignatureCheck.UNSUPPORTED_KEY_TYPE:
            raise UnsupportedKeyTypeError(key_type(key))
        return result is SignatureCheck.VALID

    @property
    def key_type(self) -> str:
        """The kty of the header JWK."""
        return key_type(self.jwk)

    def thumbprint(self) -> str:
        """RFC 7638 SHA-256 thumbprint of the header JWK (for cnf.jkt binding)."""
        return self.jwk.thumbprint()


def validate_proof(token: str, max_length: Optional[int] = None) -> DPoPProof:
    """Validate a DPoP proof JWT. See DPoPProof.parse."""
    return DPoPProof.parse(token, max_length)


def is_signed_by(proof: DPoPProof, signing_key: KeyInput) -> bool:
    """Check whether a validated proof is signed by signing_key."""
    return proof.is_signed_by(signing_key)
