"""
The computations shared by signers and the aggregator of a signing session:
binding factors, the group commitment R, and the BIP340 challenge.

Both sides must derive byte-identical values from the same signer set, so
everything here is a pure function of the session inputs.
"""

from typing import Dict, Sequence, Tuple
from .constants import BINDING_FACTOR_TAG, CHALLENGE_TAG
from .hashing import encode_index, hash_to_scalar
from .nonces import NonceCommitment
from .point import Point


class Signer:
    """A member of a signing session's frozen signer set."""

    __slots__ = ("index", "commitment", "public_key_share")

    def __init__(self, index: int, commitment: NonceCommitment, public_key_share: Point):
        if not isinstance(index, int) or index < 1:
            raise ValueError("Signer index must be a positive integer.")
        if not isinstance(commitment, NonceCommitment):
            raise TypeError("Commitment must be a NonceCommitment.")
        if not isinstance(public_key_share, Point) or public_key_share.is_zero():
            raise ValueError("Public key share must be a finite Point.")
        self.index = index
        self.commitment = commitment
        self.public_key_share = public_key_share

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Signer):
            return NotImplemented
        return (
            self.index == other.index
            and self.commitment == other.commitment
            and self.public_key_share == other.public_key_share
        )

    def __hash__(self) -> int:
        return hash((self.index, self.commitment, self.public_key_share))

    def __repr__(self) -> str:
        return f"Signer(index={self.index})"


class PartialSignature:
    """One signer's contribution z_i to a threshold signature."""

    __slots__ = ("index", "z")

    def __init__(self, index: int, z: int):
        self.index = index
        self.z = z

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PartialSignature):
            return NotImplemented
        return self.index == other.index and self.z == other.z

    def __repr__(self) -> str:
        return f"PartialSignature(index={self.index})"


def signer_indexes(signers: Sequence[Signer]) -> Tuple[int, ...]:
    """
    Return the indexes of a signer set, checking it is strictly ascending.

    Raises:
    ValueError: If the signer set is empty, unsorted, or has duplicates.
    """
    indexes = tuple(signer.index for signer in signers)
    if not indexes:
        raise ValueError("Signer set cannot be empty.")
    if any(a >= b for a, b in zip(indexes, indexes[1:])):
        raise ValueError("Signer set must be sorted by index without duplicates.")
    return indexes


def encode_commitment_list(signers: Sequence[Signer]) -> bytes:
    # B = ⟨(i, D_i, E_i)⟩_i∈S
    return b"".join(
        encode_index(signer.index) + signer.commitment.serialize() for signer in signers
    )


def binding_factors(message_hash: bytes, signers: Sequence[Signer]) -> Dict[int, int]:
    """
    Compute the binding factor of every signer in the set.

    Returns:
    Dict[int, int]: ρ_i = H(m, B, i) keyed by signer index.
    """
    signer_indexes(signers)
    encoded = encode_commitment_list(signers)
    return {
        signer.index: hash_to_scalar(
            BINDING_FACTOR_TAG, message_hash, encoded, encode_index(signer.index)
        )
        for signer in signers
    }


def commitment_share(signer: Signer, binding_factor: int) -> Point:
    """R_i = D_i + ρ_i * E_i"""
    return signer.commitment.hiding + (binding_factor * signer.commitment.binding)


def group_commitment(message_hash: bytes, signers: Sequence[Signer]) -> Point:
    """
    Calculate the group commitment R = ∑ D_i + ρ_i * E_i, i ∈ S.

    Raises:
    ValueError: If R is the point at infinity.
    """
    factors = binding_factors(message_hash, signers)
    result = Point()
    for signer in signers:
        result += commitment_share(signer, factors[signer.index])
    if result.is_zero():
        raise ValueError("Group commitment is the point at infinity.")
    return result


def challenge(nonce_commitment: Point, public_key: Point, message_hash: bytes) -> int:
    """
    Compute the BIP340 challenge c = H_2(R, Y, m) over x-only encodings, so a
    threshold signature verifies exactly like a single-signer one.
    """
    return hash_to_scalar(
        CHALLENGE_TAG,
        nonce_commitment.xonly_serialize(),
        public_key.xonly_serialize(),
        message_hash,
    )
