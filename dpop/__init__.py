"""
DPoP Proof Validator - RFC 9449 proof-of-possession JWT validation.

This package validates DPoP proof JWTs: it checks their format, verifies the
signature against the JWK in the proof header, and exposes the claims callers
need for replay protection and request binding.
"""

__version__ = "0.1.0"

# Core validation
from .proof import DPoPProof, validate_proof, is_signed_by
from .errors import (
    DPoPProofError,
    ProofParseError,
    InvalidProofFormatError,
    InvalidProofSignatureError,
    UnsupportedKeyTypeError,
)

# Signature verification
from .signatures import (
    SignatureCheck,
    SignatureVerifier,
    EllipticCurveVerifier,
    RSAVerifier,
    select_verifier,
    check_signature,
)

# Key handling
from .keys import load_jwk


__all__ = [
    "__version__",
    # Core
    "DPoPProof",
    "validate_proof",
    "is_signed_by",
    # Errors
    "DPoPProofError",
    "ProofParseError",
    "InvalidProofFormatError",
    "InvalidProofSignatureError",
    "UnsupportedKeyTypeError",
    # Signatures
    "SignatureCheck",
    "SignatureVerifier",
    "EllipticCurveVerifier",
    "RSAVerifier",
    "select_verifier",
    "check_signature",
    # Keys
    "load_jwk",
]
