"""
This module defines the Participant class, one party's side of the two-round
distributed key generation (Pedersen DKG with Feldman verifiable secret
sharing and proofs of knowledge, as in FROST).

Each Participant exclusively owns its secret polynomial and the shares it
receives. Round messages are plain values: a Round1Package is broadcast to
every peer, and a SecretShare goes from one sender to one receiver. Moving
them between participants is the caller's job (see transport.Mailbox).

A participant moves through the states

    UNINITIALIZED -> ROUND1_GENERATED -> ROUND1_VERIFIED
        -> ROUND2_SHARES_COMPUTED -> ROUND2_SHARES_VERIFIED -> FINALIZED

and any protocol fault moves it to ABORTED, after which it refuses to do
anything. There is no safe partial key state: a retry starts over with new
Participant objects and fresh polynomials.
"""

import enum
import logging
from typing import Dict, Iterable, Optional, Tuple
from .constants import PROOF_OF_KNOWLEDGE_TAG, Q
from .errors import (
    FrostError,
    GroupKeyMismatch,
    ProofVerificationFailed,
    ShareCountMismatch,
    ShareVerificationFailed,
)
from .hashing import encode_index, hash_to_scalar
from .keys import GroupKey, KeyShare, Parameters
from .point import Point, G, points_equal, random_scalar
from .polynomial import Polynomial, derive_public_verification_share

logger = logging.getLogger(__name__)


class DKGState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    ROUND1_GENERATED = "round1_generated"
    ROUND1_VERIFIED = "round1_verified"
    ROUND2_SHARES_COMPUTED = "round2_shares_computed"
    ROUND2_SHARES_VERIFIED = "round2_shares_verified"
    FINALIZED = "finalized"
    ABORTED = "aborted"


class ProofOfKnowledge:
    """A Schnorr proof σ_i = (R_i, μ_i) of knowledge of a_i_0, bound to index i."""

    __slots__ = ("nonce_commitment", "s")

    def __init__(self, nonce_commitment: Point, s: int):
        self.nonce_commitment = nonce_commitment
        self.s = s

    @staticmethod
    def _challenge(index: int, secret_commitment: Point, nonce_commitment: Point) -> int:
        # c_i = H(i, 𝚽, g^a_i_0, R_i)
        return hash_to_scalar(
            PROOF_OF_KNOWLEDGE_TAG,
            encode_index(index),
            secret_commitment.sec_serialize(),
            nonce_commitment.sec_serialize(),
        )

    @classmethod
    def prove(cls, index: int, secret: int) -> "ProofOfKnowledge":
        # k ⭠ ℤ_q
        nonce = random_scalar()
        # R_i = g^k
        nonce_commitment = nonce * G
        challenge_hash = cls._challenge(index, secret * G, nonce_commitment)
        # μ_i = k + a_i_0 * c_i
        return cls(nonce_commitment, (nonce + secret * challenge_hash) % Q)

    def verify(self, index: int, secret_commitment: Point) -> bool:
        """
        Verify the proof for participant index's constant-term commitment.

        Returns:
        bool: True iff R_l ≟ g^μ_l * 𝜙_l_0^-c_l
        """
        if not isinstance(self.nonce_commitment, Point) or not isinstance(self.s, int):
            return False
        if self.nonce_commitment.is_zero() or secret_commitment.is_zero():
            return False
        if not 0 <= self.s < Q:
            return False

        challenge_hash = self._challenge(index, secret_commitment, self.nonce_commitment)
        expected_nonce_commitment = (self.s * G) + (
            (Q - challenge_hash) * secret_commitment
        )
        return points_equal(self.nonce_commitment, expected_nonce_commitment)

    def __repr__(self) -> str:
        return f"ProofOfKnowledge(nonce_commitment={self.nonce_commitment!r}, s={self.s})"


class Round1Package:
    """The public output of round one: commitments C_i and proof σ_i."""

    __slots__ = ("index", "commitments", "proof")

    def __init__(self, index: int, commitments: Tuple[Point, ...], proof: ProofOfKnowledge):
        self.index = index
        self.commitments = tuple(commitments)
        self.proof = proof

    @property
    def public_key(self) -> Point:
        """The constant-term commitment 𝜙_i_0, this participant's share of Y."""
        return self.commitments[0]

    def __repr__(self) -> str:
        return f"Round1Package(index={self.index}, commitments={len(self.commitments)})"


class SecretShare:
    """f_sender(receiver), sent privately from sender to receiver exactly once."""

    __slots__ = ("sender", "receiver", "value")

    def __init__(self, sender: int, receiver: int, value: int):
        self.sender = sender
        self.receiver = receiver
        self.value = value

    def __repr__(self) -> str:
        return f"SecretShare(sender={self.sender}, receiver={self.receiver})"


class Participant:
    """Class representing one party of a distributed key generation."""

    def __init__(self, params: Parameters, index: int):
        """
        Initialize a participant. No secret material exists until init_keygen.

        Parameters:
        params (Parameters): The threshold t and participant count n.
        index (int): The participant's unique index in [1, n].

        Raises:
        ValueError: If the index is out of range.
        """
        if not isinstance(params, Parameters):
            raise TypeError("params must be a Parameters instance.")
        params.check_index(index)

        self.params = params
        self.index = index
        self.state = DKGState.UNINITIALIZED
        self.abort_reason: Optional[FrostError] = None
        self._polynomial: Optional[Polynomial] = None
        self._own_share: Optional[int] = None
        self.coefficient_commitments: Optional[Tuple[Point, ...]] = None
        self.proof_of_knowledge: Optional[ProofOfKnowledge] = None
        self._peer_commitments: Dict[int, Tuple[Point, ...]] = {}
        self._received_shares: Dict[int, int] = {}
        self.group_commitments: Optional[Tuple[Point, ...]] = None
        self.group_key: Optional[GroupKey] = None

    @classmethod
    def new(cls, params: Parameters, index: int) -> Tuple["Participant", Round1Package]:
        """Create a participant and run round one, returning it with its public package."""
        participant = cls(params, index)
        return participant, participant.init_keygen()

    @property
    def peer_indexes(self) -> Tuple[int, ...]:
        return tuple(i for i in range(1, self.params.n + 1) if i != self.index)

    def _require_state(self, expected: DKGState) -> None:
        if self.state is DKGState.ABORTED:
            raise ValueError(
                f"Participant {self.index} has aborted: {self.abort_reason}"
            )
        if self.state is not expected:
            raise ValueError(
                f"Participant {self.index} is in state {self.state.value}, "
                f"expected {expected.value}."
            )

    def _abort(self, error: FrostError) -> FrostError:
        logger.warning("Participant %d aborting key generation: %s", self.index, error)
        self.state = DKGState.ABORTED
        self.abort_reason = error
        self._discard_secrets()
        return error

    def _discard_secrets(self) -> None:
        if self._polynomial is not None:
            self._polynomial.discard()
        self._polynomial = None
        self._own_share = None
        self._received_shares = {}

    def init_keygen(self) -> Round1Package:
        """
        Run round one: draw a random polynomial of degree t - 1, commit to its
        coefficients, and prove knowledge of its constant term.

        Returns:
        Round1Package: The package to broadcast to every peer.
        """
        self._require_state(DKGState.UNINITIALIZED)

        # 1. Generate polynomial with random coefficients, and with degree
        # equal to the threshold minus one.
        self._polynomial = Polynomial.random(self.params.t)
        # 2. Compute proof of knowledge of secret a_i_0.
        self.proof_of_knowledge = ProofOfKnowledge.prove(
            self.index, self._polynomial.secret
        )
        # 3. Compute coefficient commitments.
        self.coefficient_commitments = self._polynomial.commitments()

        self.state = DKGState.ROUND1_GENERATED
        logger.debug("Participant %d generated its round one package", self.index)
        return self.round1_package()

    def round1_package(self) -> Round1Package:
        if self.coefficient_commitments is None or self.proof_of_knowledge is None:
            raise ValueError("Round one has not been run.")
        return Round1Package(
            self.index, self.coefficient_commitments, self.proof_of_knowledge
        )

    def public_key(self) -> Point:
        """This participant's constant-term commitment 𝜙_i_0."""
        if self.coefficient_commitments is None:
            raise ValueError("Coefficient commitments have not been initialized.")
        return self.coefficient_commitments[0]

    def verify_round1(self, packages: Iterable[Round1Package]) -> None:
        """
        Verify every peer's round one package. Exactly one package from each
        peer is required.

        Raises:
        ValueError: If packages are missing, duplicated, or from unknown indexes.
        ProofVerificationFailed: If a package's commitments have the wrong
        length or its proof of knowledge is invalid. The participant aborts.
        """
        self._require_state(DKGState.ROUND1_GENERATED)

        by_index: Dict[int, Round1Package] = {}
        for package in packages:
            if package.index in by_index:
                raise ValueError(f"Duplicate round one package from {package.index}.")
            by_index[package.index] = package
        if set(by_index) != set(self.peer_indexes):
            raise ValueError(
                f"Expected round one packages from participants {self.peer_indexes}, "
                f"received {tuple(sorted(by_index))}."
            )

        for index in self.peer_indexes:
            package = by_index[index]
            commitments = package.commitments
            if (
                len(commitments) != self.params.t
                or not all(isinstance(c, Point) and not c.is_zero() for c in commitments)
                or not isinstance(package.proof, ProofOfKnowledge)
            ):
                raise self._abort(ProofVerificationFailed(index))
            # R_l ≟ g^μ_l * 𝜙_l_0^-c_l, 1 ≤ l ≤ n, l ≠ i
            if not package.proof.verify(index, package.public_key):
                raise self._abort(ProofVerificationFailed(index))
            self._peer_commitments[index] = commitments

        self.state = DKGState.ROUND1_VERIFIED
        logger.debug(
            "Participant %d verified %d proofs of knowledge", self.index, len(by_index)
        )

    def compute_shares(self) -> Tuple[SecretShare, ...]:
        """
        Evaluate the polynomial at every peer's index.

        Returns:
        Tuple[SecretShare, ...]: Exactly n - 1 shares, ascending by receiver.
        """
        self._require_state(DKGState.ROUND1_VERIFIED)

        # (i, f_i(i)), (l, f_i(l))
        self._own_share = self._polynomial.evaluate(self.index)
        shares = tuple(
            SecretShare(self.index, receiver, self._polynomial.evaluate(receiver))
            for receiver in self.peer_indexes
        )

        self.state = DKGState.ROUND2_SHARES_COMPUTED
        return shares

    def verify_round2(self, shares: Iterable[SecretShare]) -> None:
        """
        Verify the shares received from every peer against their commitments.

        Raises:
        ShareCountMismatch: If not exactly one share arrived from each peer.
        ShareVerificationFailed: If a share does not match its sender's
        commitments. Either way the participant aborts.
        """
        self._require_state(DKGState.ROUND2_SHARES_COMPUTED)
        shares = tuple(shares)
        expected = self.params.n - 1

        senders = [share.sender for share in shares]
        if (
            len(shares) != expected
            or set(senders) != set(self.peer_indexes)
            or len(set(senders)) != len(senders)
        ):
            raise self._abort(ShareCountMismatch(self.index, expected, len(shares)))

        received: Dict[int, int] = {}
        for share in sorted(shares, key=lambda s: s.sender):
            if share.receiver != self.index or not isinstance(share.value, int):
                raise self._abort(ShareVerificationFailed(share.sender, self.index))
            value = share.value % Q
            # g^f_l(i) ≟ ∏ 𝜙_l_k^i^k, 0 ≤ k ≤ t - 1
            expected_commitment = derive_public_verification_share(
                self._peer_commitments[share.sender], self.index
            )
            if not points_equal(value * G, expected_commitment):
                raise self._abort(ShareVerificationFailed(share.sender, self.index))
            received[share.sender] = value

        self._received_shares = received
        self.state = DKGState.ROUND2_SHARES_VERIFIED
        logger.debug("Participant %d verified %d shares", self.index, len(received))

    def finalize(self, own_public_key: Point) -> Tuple[GroupKey, KeyShare]:
        """
        Sum the verified shares into the long-term key share and derive the
        group key. The polynomial is discarded.

        Parameters:
        own_public_key (Point): This participant's constant-term commitment,
            as returned by public_key().

        Returns:
        Tuple[GroupKey, KeyShare]: The group key and this participant's share.

        Raises:
        ValueError: If own_public_key is not this participant's commitment.
        GroupKeyMismatch: If the key share disagrees with the group commitments.
        """
        self._require_state(DKGState.ROUND2_SHARES_VERIFIED)
        if not points_equal(own_public_key, self.coefficient_commitments[0]):
            raise ValueError("Public key does not match this participant's commitment.")

        # s_i = ∑ f_l(i), 1 ≤ l ≤ n
        secret = self._own_share
        for sender in sorted(self._received_shares):
            secret = (secret + self._received_shares[sender]) % Q

        # Y = ∏ 𝜙_j_0, 1 ≤ j ≤ n
        group_point = own_public_key
        for sender in self.peer_indexes:
            group_point += self._peer_commitments[sender][0]

        all_commitments = (self.coefficient_commitments,) + tuple(
            self._peer_commitments[sender] for sender in self.peer_indexes
        )
        group_commitments = tuple(
            sum(commitments, Point()) for commitments in zip(*all_commitments)
        )

        self._discard_secrets()
        try:
            key_share = KeyShare(self.index, secret)
            group_key = GroupKey(group_point)
        except ValueError as e:
            raise self._abort(GroupKeyMismatch(self.index)) from e

        if not points_equal(group_commitments[0], group_key.point) or not points_equal(
            derive_public_verification_share(group_commitments, self.index),
            key_share.public_key,
        ):
            raise self._abort(GroupKeyMismatch(self.index))

        self.group_commitments = group_commitments
        self.group_key = group_key
        self.state = DKGState.FINALIZED
        logger.info("Participant %d finalized key generation", self.index)
        return group_key, key_share

    def group_public_key_shares(self) -> Dict[int, Point]:
        """
        Derive every participant's public key share Y_j from the group
        commitments, without any input from the other participants.
        """
        self._require_state(DKGState.FINALIZED)
        return {
            index: derive_public_verification_share(self.group_commitments, index)
            for index in range(1, self.params.n + 1)
        }

    def __repr__(self) -> str:
        return f"Participant(index={self.index}, state={self.state.value})"
