"""
Single-use nonce commitments for signing sessions.

Each signer pre-generates a pool of nonce pairs (d, e) with their public
commitments (D, E) = (g^d, g^e). Every signing session takes exactly one pair
out of the pool. A pair that has been taken is never returned to the pool, and
its secret nonces are wiped as soon as they are used to sign: signing twice
with the same nonces would reveal the signer's key share.
"""

import logging
import threading
from collections import deque
from typing import Deque, Optional, Tuple
from .errors import NonceExhausted
from .point import Point, G, random_scalar

logger = logging.getLogger(__name__)


class NonceCommitment:
    """Public half of a nonce pair: (D, E)."""

    __slots__ = ("hiding", "binding")

    def __init__(self, hiding: Point, binding: Point):
        if not isinstance(hiding, Point) or not isinstance(binding, Point):
            raise TypeError("Nonce commitments must be Point instances.")
        if hiding.is_zero() or binding.is_zero():
            raise ValueError("Nonce commitments cannot be the point at infinity.")
        self.hiding = hiding
        self.binding = binding

    def serialize(self) -> bytes:
        return self.hiding.sec_serialize() + self.binding.sec_serialize()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NonceCommitment):
            return NotImplemented
        return self.hiding == other.hiding and self.binding == other.binding

    def __hash__(self) -> int:
        return hash((self.hiding, self.binding))

    def __repr__(self) -> str:
        return f"NonceCommitment(hiding={self.hiding!r}, binding={self.binding!r})"


class CommitmentShare:
    """A nonce pair (d, e) together with its public commitment (D, E)."""

    __slots__ = ("signer", "_nonces", "commitment")

    def __init__(self, signer: int, hiding_nonce: int, binding_nonce: int):
        self.signer = signer
        self._nonces: Optional[Tuple[int, int]] = (hiding_nonce, binding_nonce)
        # (D_i_j, E_i_j) = (g^d_i_j, g^e_i_j)
        self.commitment = NonceCommitment(hiding_nonce * G, binding_nonce * G)

    @classmethod
    def generate(cls, signer: int) -> "CommitmentShare":
        # (d_i_j, e_i_j) ⭠ $ ℤ*_q x ℤ*_q
        return cls(signer, random_scalar(), random_scalar())

    @property
    def consumed(self) -> bool:
        return self._nonces is None

    def consume(self) -> Tuple[int, int]:
        """
        Return the secret nonces and wipe them from this object.

        Raises:
        ValueError: If the nonces were already used.
        """
        if self._nonces is None:
            raise ValueError(
                f"Nonce pair of signer {self.signer} has already been used."
            )
        nonces, self._nonces = self._nonces, None
        return nonces

    def __repr__(self) -> str:
        state = "consumed" if self.consumed else "unused"
        return f"CommitmentShare(signer={self.signer}, {state})"


class CommitmentShareList:
    """
    A signer's pool of unused commitment shares. The pool only ever shrinks:
    take_one removes the share it returns, atomically per pool.
    """

    def __init__(self, signer: int, shares: Tuple[CommitmentShare, ...] = ()):
        self.signer = signer
        self._shares: Deque[CommitmentShare] = deque(shares)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._shares)

    def public_commitments(self) -> Tuple[NonceCommitment, ...]:
        """The public commitments of the shares still in the pool, in draw order."""
        with self._lock:
            return tuple(share.commitment for share in self._shares)

    def take_one(self) -> CommitmentShare:
        """
        Remove and return the next unused commitment share.

        Raises:
        NonceExhausted: If the pool is empty.
        """
        with self._lock:
            if not self._shares:
                logger.warning("Signer %d has exhausted its nonce pool", self.signer)
                raise NonceExhausted(self.signer)
            share = self._shares.popleft()
            remaining = len(self._shares)
        logger.debug("Signer %d took a nonce pair, %d left", self.signer, remaining)
        return share


def generate_commitment_share_lists(signer_index: int, count: int) -> CommitmentShareList:
    """
    Generate count fresh nonce pairs for a signer.

    Parameters:
    signer_index (int): The index of the signer who owns the pool.
    count (int): The number of single-use pairs to generate.

    Returns:
    CommitmentShareList: The pool of unused pairs.
    """
    if not isinstance(signer_index, int) or signer_index < 1:
        raise ValueError("Signer index must be a positive integer.")
    if not isinstance(count, int) or count < 0:
        raise ValueError("Count must be a non-negative integer.")

    shares = tuple(CommitmentShare.generate(signer_index) for _ in range(count))
    logger.debug("Generated %d nonce pairs for signer %d", count, signer_index)
    return CommitmentShareList(signer_index, shares)
