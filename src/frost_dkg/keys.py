"""
Long-lived key material produced by distributed key generation, and the
threshold signature produced by a signing session, with their byte encodings.

Encodings are fixed width: a group key is a 33-byte compressed point, a key
share secret is a 32-byte scalar, and a threshold signature is 64 bytes
(32-byte x-only R followed by the 32-byte scalar z, as in BIP340).
"""

import hmac
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Sequence, Tuple
from .constants import Q, SIGNATURE_SIZE, XONLY_POINT_SIZE
from .errors import MalformedKeyMaterial
from .nonces import CommitmentShare
from .point import Point, G, scalar_from_bytes, scalar_to_bytes
from .polynomial import lagrange_coefficient
from .signing import (
    PartialSignature,
    Signer,
    binding_factors,
    challenge,
    group_commitment,
    signer_indexes,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Parameters:
    """Threshold t and number of participants n of a key."""

    t: int
    n: int

    def __post_init__(self):
        if not isinstance(self.t, int) or not isinstance(self.n, int):
            raise ValueError("Threshold and participant count must be integers.")
        if not 1 <= self.t <= self.n:
            raise ValueError("Threshold must satisfy 1 <= t <= n.")
        if self.n >= 2**32:
            raise ValueError("Participant count must fit in 32 bits.")

    def check_index(self, index: int) -> None:
        if not isinstance(index, int) or not 1 <= index <= self.n:
            raise ValueError(f"Participant index must be an integer in [1, {self.n}].")


@dataclass(frozen=True)
class GroupKey:
    """The joint public key Y = ∑ 𝜙_j_0, 1 ≤ j ≤ n."""

    point: Point

    def __post_init__(self):
        if not isinstance(self.point, Point) or self.point.is_zero():
            raise ValueError("Group key must be a finite Point.")

    @property
    def has_even_y(self) -> bool:
        return self.point.has_even_y()

    @property
    def xonly_point(self) -> Point:
        """The even-y point sharing this key's x-coordinate, as BIP340 verifies against."""
        return self.point if self.point.has_even_y() else -self.point

    def to_bytes(self) -> bytes:
        return self.point.sec_serialize()

    @classmethod
    def from_bytes(cls, data: bytes) -> "GroupKey":
        try:
            return cls(Point.sec_deserialize(data))
        except ValueError as e:
            raise MalformedKeyMaterial("Invalid group public key") from e


class KeyShare:
    """
    A participant's long-term signing share s_i, with its index and public
    key share Y_i = g^s_i.
    """

    __slots__ = ("index", "_secret", "public_key")

    def __init__(self, index: int, secret: int):
        if not isinstance(index, int) or index < 1:
            raise ValueError("Key share index must be a positive integer.")
        if not isinstance(secret, int) or not 0 < secret < Q:
            raise ValueError("Key share secret must be an integer in [1, Q).")
        self.index = index
        self._secret = secret
        # Y_i = g^s_i
        self.public_key = secret * G

    @property
    def secret(self) -> int:
        return self._secret

    def to_bytes(self) -> bytes:
        return scalar_to_bytes(self._secret)

    @classmethod
    def from_bytes(cls, index: int, data: bytes) -> "KeyShare":
        try:
            return cls(index, scalar_from_bytes(data))
        except (TypeError, ValueError) as e:
            raise MalformedKeyMaterial("Invalid private key bytes") from e

    def sign(
        self,
        message_hash: bytes,
        group_key: GroupKey,
        commitment_share: CommitmentShare,
        signers: Sequence[Signer],
    ) -> PartialSignature:
        """
        Generate this share's partial signature for a signing session.

        Parameters:
        message_hash (bytes): The context-bound hash of the message being signed.
        group_key (GroupKey): The group public key.
        commitment_share (CommitmentShare): This signer's nonce pair for the
            session. It is consumed and can never sign again.
        signers (Sequence[Signer]): The frozen, ascending signer set.

        Returns:
        PartialSignature: z_i = d_i + (e_i * ρ_i) + λ_i * s_i * c

        Raises:
        ValueError: If this share is not in the signer set, the nonce pair does
        not match the commitment published for it, or the nonces were used.
        """
        indexes = signer_indexes(signers)
        own = [signer for signer in signers if signer.index == self.index]
        if not own:
            raise ValueError(f"Signer {self.index} is not in the signer set.")
        if commitment_share.signer != self.index:
            raise ValueError("Nonce pair belongs to a different signer.")
        if own[0].commitment != commitment_share.commitment:
            raise ValueError("Nonce pair does not match the published commitment.")
        if commitment_share.consumed:
            raise ValueError(
                f"Nonce pair of signer {self.index} has already been used."
            )

        # R
        nonce_commitment = group_commitment(message_hash, signers)
        # c = H_2(R, Y, m)
        challenge_hash = challenge(nonce_commitment, group_key.point, message_hash)
        # ρ_i = H_1(m, B, i), i ∈ S
        binding_factor = binding_factors(message_hash, signers)[self.index]
        # λ_i
        coefficient = lagrange_coefficient(indexes, self.index)

        # d_i, e_i
        first_nonce, second_nonce = commitment_share.consume()
        # Negate d_i and e_i if R is odd
        if not nonce_commitment.has_even_y():
            first_nonce = Q - first_nonce
            second_nonce = Q - second_nonce

        # Negate s_i if Y is odd
        secret = self._secret
        if not group_key.has_even_y:
            secret = Q - secret

        z = (
            first_nonce
            + (second_nonce * binding_factor)
            + coefficient * secret * challenge_hash
        ) % Q
        logger.debug("Signer %d produced a partial signature", self.index)
        return PartialSignature(self.index, z)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KeyShare):
            return NotImplemented
        return self.index == other.index and hmac.compare_digest(
            self.to_bytes(), other.to_bytes()
        )

    def __repr__(self) -> str:
        return f"KeyShare(index={self.index})"


@dataclass(frozen=True)
class ThresholdSignature:
    """A combined signature σ = (R, z)."""

    nonce_commitment: Point
    z: int

    def to_bytes(self) -> bytes:
        return self.nonce_commitment.xonly_serialize() + scalar_to_bytes(self.z)

    @classmethod
    def from_bytes(cls, data: bytes) -> "ThresholdSignature":
        if not isinstance(data, (bytes, bytearray)) or len(data) != SIGNATURE_SIZE:
            raise MalformedKeyMaterial("Invalid length for threshold signature")
        try:
            nonce_commitment = Point.xonly_deserialize(bytes(data[:XONLY_POINT_SIZE]))
            z = scalar_from_bytes(bytes(data[XONLY_POINT_SIZE:]))
        except ValueError as e:
            raise MalformedKeyMaterial("Failed to deserialize ThresholdSignature") from e
        return cls(nonce_commitment, z)

    def verify(self, group_key: GroupKey, message_hash: bytes) -> bool:
        """
        Check the signature as a BIP340 Schnorr signature on message_hash.

        Returns:
        bool: True iff R ≟ g^z * Y^-c, where Y is the even-y group key.
        """
        if self.nonce_commitment.is_zero() or not 0 <= self.z < Q:
            return False
        public_key = group_key.xonly_point
        # c = H_2(R, Y, m)
        challenge_hash = challenge(self.nonce_commitment, public_key, message_hash)
        # R' = g^z * Y^-c
        expected = (self.z * G) + ((Q - challenge_hash) * public_key)
        if expected.is_zero() or not expected.has_even_y():
            return False
        return hmac.compare_digest(
            expected.xonly_serialize(), self.nonce_commitment.xonly_serialize()
        )


@dataclass(frozen=True)
class KeyMaterial:
    """
    The outcome of a key generation ceremony: the group key and every
    participant's key share, ordered by index.
    """

    group_key: GroupKey
    private_shares: Tuple[KeyShare, ...]

    def __post_init__(self):
        indexes = [share.index for share in self.private_shares]
        if len(indexes) != len(set(indexes)):
            raise MalformedKeyMaterial("Duplicate key share index")

    def share(self, index: int) -> KeyShare:
        for key_share in self.private_shares:
            if key_share.index == index:
                return key_share
        raise KeyError(f"No key share for participant {index}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "group_key": self.group_key.to_bytes().hex(),
            "private_shares": [
                [key_share.index, key_share.to_bytes().hex()]
                for key_share in self.private_shares
            ],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "KeyMaterial":
        """
        Decode key material from its dictionary form.

        Raises:
        MalformedKeyMaterial: If any field is missing or malformed.
        """
        try:
            group_key_bytes = bytes.fromhex(data["group_key"])
            entries = data["private_shares"]
            if not isinstance(entries, list):
                raise TypeError("private_shares must be a list")
            shares = []
            for entry in entries:
                index, share_hex = entry
                if isinstance(index, bool) or not isinstance(index, int):
                    raise TypeError("Share index must be an integer")
                shares.append(KeyShare.from_bytes(index, bytes.fromhex(share_hex)))
        except MalformedKeyMaterial:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedKeyMaterial("Malformed key material") from e

        return cls(GroupKey.from_bytes(group_key_bytes), tuple(shares))

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, text: str) -> "KeyMaterial":
        try:
            data = json.loads(text)
        except ValueError as e:
            raise MalformedKeyMaterial("Key material is not valid JSON") from e
        return cls.from_dict(data)
