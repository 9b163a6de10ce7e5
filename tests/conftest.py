"""
Shared pytest fixtures for DPoP proof tests.

ProofBuilder produces DPoP proof JWTs for tests, including deliberately
broken ones (bad signature, missing header fields, missing claims).
"""

import uuid
from datetime import datetime, timezone

import pytest
from jwcrypto import jwk, jws
from jwcrypto.common import base64url_encode, json_encode
from jwcrypto.jwa import JWA

from dpop.keys import public_jwk_dict

DPOP_JWT_TYPE = "dpop+jwt"
VALID_HTM = "POST"
VALID_HTU = "https://myresourceserver.com/resource/abc"

EC_ALGORITHMS = {"P-256": "ES256", "P-384": "ES384", "P-521": "ES512", "secp256k1": "ES256K"}
RSA_ALGORITHMS = ("RS256", "RS384", "RS512", "PS256", "PS384", "PS512")

_NOT_SET = object()


def generate_ec_key(kid: str = "dpop-test-key", crv: str = "P-256") -> jwk.JWK:
    return jwk.JWK.generate(kty="EC", crv=crv, kid=kid)


def signing_algorithms(key: jwk.JWK) -> tuple:
    """JWS algorithms a key can sign with, default first."""
    kty = key["kty"]
    if kty == "EC":
        return (EC_ALGORITHMS[key["crv"]],)
    if kty == "RSA":
        return RSA_ALGORITHMS
    return ("Ed25519",)


def sign(key: jwk.JWK, algorithm: str, data: bytes) -> bytes:
    """Produce a raw JWS signature over data with a private JWK."""
    return JWA.signing_alg(algorithm).sign(key, data)


class ProofBuilder:
    """Builds DPoP proof JWTs, valid by default, for tests."""

    def __init__(self, key: jwk.JWK = None):
        self.key = key or generate_ec_key()
        self.type = DPOP_JWT_TYPE
        self.algorithm = _NOT_SET
        self.claims = {}
        self.header_jwk = _NOT_SET
        self.bad_signature = False
        self.no_key_in_header = False

    def _claim(self, name, value):
        if value is None:
            self.claims.pop(name, None)
        else:
            self.claims[name] = value
        return self

    def with_type(self, typ):
        self.type = typ
        return self

    def with_jti(self, jti):
        return self._claim("jti", jti)

    def with_htm(self, htm):
        return self._claim("htm", htm)

    def with_htu(self, htu):
        return self._claim("htu", htu)

    def with_iat(self, issued_at):
        if isinstance(issued_at, datetime):
            issued_at = int(issued_at.timestamp())
        return self._claim("iat", issued_at)

    def with_claim(self, name, value):
        return self._claim(name, value)

    def with_algorithm(self, algorithm):
        self.algorithm = algorithm
        return self

    def with_header_jwk(self, jwk_params):
        self.header_jwk = jwk_params
        return self

    def with_bad_signature(self):
        self.bad_signature = True
        return self

    def with_no_key_in_header(self):
        self.no_key_in_header = True
        return self

    def _default_algorithm(self) -> str:
        return signing_algorithms(self.key)[0]

    def build(self) -> str:
        algorithm = self._default_algorithm() if self.algorithm is _NOT_SET else self.algorithm

        header = {}
        if algorithm is not None:
            header["alg"] = algorithm
        if self.type is not None:
            header["typ"] = self.type
        if not self.no_key_in_header:
            header["jwk"] = (
                public_jwk_dict(self.key) if self.header_jwk is _NOT_SET else self.header_jwk
            )

        signing_key = self.key
        if self.bad_signature:
            crv = self.key["crv"] if self.key["kty"] == "EC" else "P-256"
            signing_key = generate_ec_key("dpop-test-invalid-key", crv)

        if algorithm in signing_algorithms(signing_key):
            token = jws.JWS(json_encode(self.claims))
            token.add_signature(signing_key, None, protected=json_encode(header))
            return token.serialize(compact=True)

        # Missing or mismatched alg: sign with the key's own algorithm anyway
        header_segment = base64url_encode(json_encode(header))
        payload_segment = base64url_encode(json_encode(self.claims))
        signing_input = f"{header_segment}.{payload_segment}".encode("ascii")
        signature = sign(signing_key, signing_algorithms(signing_key)[0], signing_input)
        return f"{header_segment}.{payload_segment}.{base64url_encode(signature)}"


@pytest.fixture(scope="session")
def ec_key() -> jwk.JWK:
    """P-256 key used as the proof's own key."""
    return generate_ec_key("dpop-test-key")


@pytest.fixture(scope="session")
def other_ec_key() -> jwk.JWK:
    """A second, unrelated P-256 key."""
    return generate_ec_key("some-key")


@pytest.fixture(scope="session")
def rsa_key() -> jwk.JWK:
    """2048-bit RSA key."""
    return jwk.JWK.generate(kty="RSA", size=2048, kid="dpop-rsa-key")


@pytest.fixture(scope="session")
def ed25519_key() -> jwk.JWK:
    """Ed25519 key (no verifier exists for OKP keys)."""
    return jwk.JWK.generate(kty="OKP", crv="Ed25519")


@pytest.fixture
def jti() -> str:
    return str(uuid.uuid4())


@pytest.fixture
def issued_at() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


@pytest.fixture
def base_proof(ec_key, jti, issued_at):
    """Factory for a ProofBuilder with all mandatory claims set."""

    def _make(key: jwk.JWK = None) -> ProofBuilder:
        return (
            ProofBuilder(key or ec_key)
            .with_jti(jti)
            .with_htm(VALID_HTM)
            .with_htu(VALID_HTU)
            .with_iat(issued_at)
        )

    return _make
