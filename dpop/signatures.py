"""
DPoP Signature Verification - key-type dispatch for JWS signature checks.

A verifier is selected from the JWK's key type and bound to the algorithm
named in the proof header. Only EC and RSA keys are supported; any other key
type is rejected explicitly rather than silently falling back. The JWS
algorithms themselves come from jwcrypto's JWA registry.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, FrozenSet, Mapping

from cryptography.exceptions import InvalidSignature
from jwcrypto import jwk
from jwcrypto.common import JWException
from jwcrypto.jwa import JWA

from dpop.errors import UnsupportedKeyTypeError
from dpop.keys import key_type

logger = logging.getLogger(__name__)


class SignatureCheck(Enum):
    """Outcome of checking a signature against one key."""

    VALID = "valid"
    INVALID = "invalid"
    UNSUPPORTED_KEY_TYPE = "unsupported_key_type"


# =============================================================================
# Verifiers
# =============================================================================


class SignatureVerifier(ABC):
    """Checks a JWS signature over a signing input for one key and algorithm."""

    def __init__(self, key: jwk.JWK, algorithm: str):
        self.key = key
        self.algorithm = algorithm

    @abstractmethod
    def accepts_algorithm(self) -> bool:
        """Whether the bound key can have produced a signature with the algorithm."""
        pass

    def _check_signature_shape(self, signature: bytes) -> bool:
        return True

    def verify(self, signing_input: bytes, signature: bytes) -> bool:
        """Returns True only if the signature matches."""
        if not self.accepts_algorithm():
            logger.debug(
                f"Algorithm {self.algorithm!r} cannot be produced by a {key_type(self.key)} key"
            )
            return False
        if not self._check_signature_shape(signature):
            return False

        try:
            JWA.signing_alg(self.algorithm).verify(self.key, signing_input, signature)
        except (InvalidSignature, JWException, ValueError):
            return False
        return True


class EllipticCurveVerifier(SignatureVerifier):
    """ECDSA verifier for JWS ES* algorithms."""

    # crv -> the one JWS algorithm a key on that curve signs with
    CURVES: Mapping[str, str] = {
        "P-256": "ES256",
        "P-384": "ES384",
        "P-521": "ES512",
        "secp256k1": "ES256K",
    }

    def __init__(self, key: jwk.JWK, algorithm: str):
        super().__init__(key, algorithm)
        self.curve_name = key.get("crv")
        if self.curve_name not in self.CURVES:
            raise ValueError(f"Unsupported curve: {self.curve_name}")
        self.curve_algorithm = self.CURVES[self.curve_name]
        # Loads the point now so an off-curve key fails here
        public_key = key.get_op_key("verify", self.curve_name)
        self._coordinate_size = (public_key.curve.key_size + 7) // 8

    def accepts_algorithm(self) -> bool:
        return self.algorithm == self.curve_algorithm

    def _check_signature_shape(self, signature: bytes) -> bool:
        # JWS carries ECDSA signatures as raw R || S
        return len(signature) == 2 * self._coordinate_size


class RSAVerifier(SignatureVerifier):
    """RSASSA verifier for JWS RS* (PKCS#1 v1.5) and PS* (PSS) algorithms."""

    ALGORITHMS: FrozenSet[str] = frozenset(
        {"RS256", "RS384", "RS512", "PS256", "PS384", "PS512"}
    )

    def __init__(self, key: jwk.JWK, algorithm: str):
        super().__init__(key, algorithm)
        key.get_op_key("verify")

    def accepts_algorithm(self) -> bool:
        return self.algorithm in self.ALGORITHMS


# =============================================================================
# Strategy Selection
# =============================================================================

# kty -> verifier factory
VERIFIERS: Mapping[str, Callable[[jwk.JWK, str], SignatureVerifier]] = {
    "EC": EllipticCurveVerifier,
    "RSA": RSAVerifier,
}


def select_verifier(key: jwk.JWK, algorithm: str) -> SignatureVerifier:
    """
    Build the signature verifier for a key.

    Args:
        key: The public (or private) JWK to verify with.
        algorithm: JWS algorithm named in the proof header.

    Returns:
        A SignatureVerifier bound to the key's public parameters.

    Raises:
        UnsupportedKeyTypeError: If the key type has no verifier.
        ValueError: If the key parameters do not form a usable public key.
        JWException: If jwcrypto refuses the key for verification.
    """
    kty = key_type(key)
    factory = VERIFIERS.get(kty)
    if factory is None:
        raise UnsupportedKeyTypeError(kty)
    return factory(key, algorithm)


def check_signature(
    key: jwk.JWK, algorithm: str, signing_input: bytes, signature: bytes
) -> SignatureCheck:
    """
    Check a JWS signature against a single key.

    This is the one verification primitive behind both proof validation and
    key-match queries; callers decide how to surface an INVALID result.
    """
    try:
        verifier = select_verifier(key, algorithm)
    except UnsupportedKeyTypeError:
        return SignatureCheck.UNSUPPORTED_KEY_TYPE
    except (JWException, ValueError, TypeError) as e:
        logger.debug(f"Key cannot be used for verification: {e}")
        return SignatureCheck.INVALID

    if verifier.verify(signing_input, signature):
        return SignatureCheck.VALID
    return SignatureCheck.INVALID
