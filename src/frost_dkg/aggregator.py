"""
This module defines the SignatureAggregator, which coordinates one signing
session: it collects the signers' nonce commitments and public key shares,
freezes the signer set, checks each partial signature as it arrives, and
combines them into a threshold signature.

A session is bound to one (context, message) pair for its whole life, and
moves through the states

    COLLECTING_SIGNERS -> SIGNERS_FINALIZED -> COLLECTING_PARTIAL_SIGNATURES
        -> AGGREGATED

Any fault moves it to FAILED. Faults caused by a signer name that signer, so a
new session can be run without it.
"""

import enum
import logging
from typing import Dict, Optional, Tuple
from .constants import Q
from .errors import (
    DuplicateSigner,
    FrostError,
    InsufficientSigners,
    InvalidPartialSignature,
    SignatureVerificationFailed,
)
from .hashing import compute_message_hash
from .keys import GroupKey, Parameters, ThresholdSignature
from .nonces import NonceCommitment
from .point import Point, G, points_equal
from .polynomial import lagrange_coefficient
from .signing import (
    PartialSignature,
    Signer,
    binding_factors,
    challenge,
    commitment_share,
    group_commitment,
)

logger = logging.getLogger(__name__)


class AggregatorState(enum.Enum):
    COLLECTING_SIGNERS = "collecting_signers"
    SIGNERS_FINALIZED = "signers_finalized"
    COLLECTING_PARTIAL_SIGNATURES = "collecting_partial_signatures"
    AGGREGATED = "aggregated"
    FAILED = "failed"


class SignatureAggregator:
    """Class representing the signature aggregator of one signing session."""

    def __init__(
        self, params: Parameters, group_key: GroupKey, context: bytes, message: bytes
    ):
        """
        Start a signing session.

        Parameters:
        params (Parameters): The threshold t and participant count n of the key.
        group_key (GroupKey): The group public key signatures will verify against.
        context (bytes): The context string; verification must use the same one.
        message (bytes): The message being signed.
        """
        if not isinstance(group_key, GroupKey):
            raise TypeError("group_key must be a GroupKey.")
        self.params = params
        self.group_key = group_key
        self.context = bytes(context)
        self.message = bytes(message)
        # m
        self._message_hash = compute_message_hash(self.context, self.message)
        self.state = AggregatorState.COLLECTING_SIGNERS
        self.failure: Optional[FrostError] = None
        self._candidates: Dict[int, Signer] = {}
        self._signers: Optional[Tuple[Signer, ...]] = None
        self._nonce_commitment: Optional[Point] = None
        self._challenge: Optional[int] = None
        self._binding_factors: Dict[int, int] = {}
        self._partial_signatures: Dict[int, PartialSignature] = {}

    @property
    def message_hash(self) -> bytes:
        return self._message_hash

    @property
    def signers(self) -> Tuple[Signer, ...]:
        """The frozen signer set, ascending by index."""
        if self._signers is None:
            raise ValueError("Signers have not been finalized.")
        return self._signers

    def _require_state(self, *expected: AggregatorState) -> None:
        if self.state is AggregatorState.FAILED:
            raise ValueError(f"Signing session has failed: {self.failure}")
        if self.state not in expected:
            raise ValueError(f"Signing session is in state {self.state.value}.")

    def _fail(self, error: FrostError) -> FrostError:
        logger.warning("Signing session failed: %s", error)
        self.state = AggregatorState.FAILED
        self.failure = error
        return error

    def include_signer(
        self, index: int, commitment: NonceCommitment, public_key_share: Point
    ) -> None:
        """
        Register a candidate signer with its nonce commitment for this session
        and its public key share.

        Raises:
        DuplicateSigner: If the index is already registered.
        ValueError: If the index is outside [1, n].
        """
        self._require_state(AggregatorState.COLLECTING_SIGNERS)
        self.params.check_index(index)
        if index in self._candidates:
            raise DuplicateSigner(index)
        self._candidates[index] = Signer(index, commitment, public_key_share)
        logger.debug("Included signer %d", index)

    def finalize_signers(self) -> Tuple[Signer, ...]:
        """
        Freeze the signer set and derive the session's group commitment and
        challenge.

        Returns:
        Tuple[Signer, ...]: The signer set, ascending by index.

        Raises:
        InsufficientSigners: If fewer than t signers are registered.
        """
        self._require_state(AggregatorState.COLLECTING_SIGNERS)
        if len(self._candidates) < self.params.t:
            raise self._fail(InsufficientSigners(len(self._candidates), self.params.t))

        signers = tuple(self._candidates[i] for i in sorted(self._candidates))
        # ρ_l = H_1(m, B, l), l ∈ S
        self._binding_factors = binding_factors(self._message_hash, signers)
        # R
        self._nonce_commitment = group_commitment(self._message_hash, signers)
        # c = H_2(R, Y, m)
        self._challenge = challenge(
            self._nonce_commitment, self.group_key.point, self._message_hash
        )
        self._signers = signers
        self.state = AggregatorState.SIGNERS_FINALIZED
        logger.info(
            "Signer set finalized: %s", ", ".join(str(s.index) for s in signers)
        )
        return signers

    def signing_inputs(self) -> Tuple[bytes, Tuple[Signer, ...]]:
        """The (message hash, signer set) each signer needs to sign."""
        return (self._message_hash, self.signers)

    def verify_partial_signature(self, partial_signature: PartialSignature) -> bool:
        """
        Check g^z_i ≟ R_i + Y_i^(c * λ_i), with R_i and Y_i negated as the
        signer negates its nonces and share for BIP340 parity.

        Raises:
        ValueError: If the signer set is not final or does not contain the signer.
        """
        signers = self.signers
        signer = next((s for s in signers if s.index == partial_signature.index), None)
        if signer is None:
            raise ValueError(f"Signer {partial_signature.index} is not in the signer set.")

        z = partial_signature.z
        if not isinstance(z, int) or not 0 <= z < Q:
            return False

        nonce_share = commitment_share(signer, self._binding_factors[signer.index])
        if not self._nonce_commitment.has_even_y():
            nonce_share = -nonce_share
        public_key_share = signer.public_key_share
        if not self.group_key.has_even_y:
            public_key_share = -public_key_share

        coefficient = lagrange_coefficient(
            tuple(s.index for s in signers), signer.index
        )
        expected = nonce_share + ((self._challenge * coefficient) * public_key_share)
        return points_equal(z * G, expected)

    def include_partial_signature(self, partial_signature: PartialSignature) -> None:
        """
        Verify and record a signer's partial signature.

        Raises:
        ValueError: If the signer is not in the signer set or already signed.
        InvalidPartialSignature: If the partial signature is invalid. The
        session fails and the error names the signer.
        """
        self._require_state(
            AggregatorState.SIGNERS_FINALIZED,
            AggregatorState.COLLECTING_PARTIAL_SIGNATURES,
        )
        index = partial_signature.index
        if index not in {s.index for s in self.signers}:
            raise ValueError(f"Signer {index} is not in the signer set.")
        if index in self._partial_signatures:
            raise ValueError(f"Signer {index} has already submitted a partial signature.")

        if not self.verify_partial_signature(partial_signature):
            raise self._fail(InvalidPartialSignature(index))

        self._partial_signatures[index] = partial_signature
        self.state = AggregatorState.COLLECTING_PARTIAL_SIGNATURES
        logger.debug("Accepted partial signature from signer %d", index)

    def aggregate(self) -> ThresholdSignature:
        """
        Combine the partial signatures into σ = (R, z = ∑ z_i), and check the
        result against the group key before returning it.

        Raises:
        InsufficientSigners: If a signer's partial signature is missing.
        SignatureVerificationFailed: If the combined signature does not verify.
        """
        self._require_state(
            AggregatorState.SIGNERS_FINALIZED,
            AggregatorState.COLLECTING_PARTIAL_SIGNATURES,
        )
        signers = self.signers
        if len(self._partial_signatures) != len(signers):
            raise self._fail(
                InsufficientSigners(len(self._partial_signatures), len(signers))
            )

        z = sum(self._partial_signatures[s.index].z for s in signers) % Q
        nonce_commitment = self._nonce_commitment
        if not nonce_commitment.has_even_y():
            nonce_commitment = -nonce_commitment
        signature = ThresholdSignature(nonce_commitment, z)

        if not signature.verify(self.group_key, self._message_hash):
            raise self._fail(SignatureVerificationFailed())

        self.state = AggregatorState.AGGREGATED
        logger.info("Aggregated threshold signature from %d signers", len(signers))
        return signature
