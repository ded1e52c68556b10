"""
Constants for the secp256k1 curve, the hash tags used by each step of the
protocol, and the defaults used by the command line tool.

The curve operates over a finite field of prime order P, with a base point G
of order Q, specified by its coordinates G_x and G_y.
"""

# The prime modulus of the field
P: int = 2**256 - 2**32 - 977

# The order of the curve
Q: int = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

# X-coordinate of the generator point G
G_x: int = 0x79BE667EF9DCBBAC55A06295CE870B07029BFCDB2DCE28D959F2815B16F81798

# Y-coordinate of the generator point G
G_y: int = 0x483ADA7726A3C4655DA4FBFC0E1108A8FD17B448A68554199C47D08FFB10D4B8

# Encoded widths
SCALAR_SIZE: int = 32
XONLY_POINT_SIZE: int = 32
SEC_POINT_SIZE: int = 33
SIGNATURE_SIZE: int = XONLY_POINT_SIZE + SCALAR_SIZE

# Hash tags, one per use
PROOF_OF_KNOWLEDGE_TAG: bytes = b"FROST-DKG/proof-of-knowledge"
BINDING_FACTOR_TAG: bytes = b"FROST-DKG/binding-factor"
MESSAGE_TAG: bytes = b"FROST-DKG/message"
CHALLENGE_TAG: bytes = b"BIP0340/challenge"

# Command line defaults
DEFAULT_CONTEXT: bytes = b"THRESHOLD SIGNING CONTEXT"
DEFAULT_THRESHOLD: int = 3
DEFAULT_PARTICIPANTS: int = 5
DEFAULT_KEY_FILE: str = "./results/frost_keys.json"
DEFAULT_SIGNATURE_FILE: str = "./results/signature.json"
