"""
DPoP proof validation errors.

Every failure raised by this package derives from DPoPProofError, so callers
can catch the whole family or map each kind to a protocol response
(e.g. 400 for a malformed proof, 401 for a bad signature).
"""


# =============================================================================
# Exceptions
# =============================================================================


class DPoPProofError(Exception):
    """Base exception for DPoP proof errors."""

    pass


class ProofParseError(DPoPProofError):
    """Raised when the proof is not a decodable compact JWS."""

    def __init__(self, message: str = "DPoP proof is not a valid compact JWS"):
        super().__init__(message)


class InvalidProofFormatError(DPoPProofError):
    """Raised when a decodable proof breaks a DPoP format rule."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class InvalidProofSignatureError(DPoPProofError):
    """Raised when the proof is not signed by the JWK in its own header."""

    def __init__(self):
        super().__init__("DPoP proof signature does not match the JWK in its header")


class UnsupportedKeyTypeError(DPoPProofError):
    """Raised when no signature verifier exists for a key type."""

    def __init__(self, key_type):
        self.key_type = key_type
        super().__init__(f"Unexpected key type={key_type}")
