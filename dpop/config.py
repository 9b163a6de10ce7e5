# dpop/config.py
"""
Centralized configuration for the DPoP proof validator.

Configurable values are read from environment variables with sensible defaults.

Usage:
    from dpop.config import MAX_PROOF_LENGTH

Environment Variables:
    DPOP_MAX_PROOF_LENGTH: Longest proof string accepted by the parser (default: 8192)
"""

import os
from typing import Final

# =============================================================================
# Parser Limits
# =============================================================================

# Proofs are sent in a single HTTP header, so anything larger is rejected
# before any base64 or JSON decoding happens
MAX_PROOF_LENGTH: Final[int] = int(os.getenv("DPOP_MAX_PROOF_LENGTH", "8192"))

# =============================================================================
# Configuration Summary (for debugging)
# =============================================================================


def print_config() -> None:
    """Print current configuration (useful for debugging)."""
    print("DPoP Proof Validator Configuration:")
    print(f"  MAX_PROOF_LENGTH: {MAX_PROOF_LENGTH}")


if __name__ == "__main__":
    print_config()
