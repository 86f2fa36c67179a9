"""
TheOcean relay order signing.

Canonical order encoding, hashing and secp256k1 signing for 0x-style orders,
plus the reserve, sign and place lifecycle against the relay.
"""

__version__ = "0.1.0"
