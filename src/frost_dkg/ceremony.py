"""
Reference ceremonies that run every participant inside one process: key
generation for n participants, and signing with t of them.

Each simulated participant is a separate Participant object with its own
polynomial, key share and nonce pool. Round messages only move between them
through a Mailbox, the same way they would move over a network.
"""

import logging
from typing import Dict, List, Optional, Sequence
from .aggregator import SignatureAggregator
from .constants import DEFAULT_CONTEXT
from .errors import GroupKeyMismatch, InsufficientSigners
from .keys import GroupKey, KeyMaterial, KeyShare, Parameters, ThresholdSignature
from .nonces import CommitmentShare, generate_commitment_share_lists
from .participant import Participant
from .transport import Mailbox
from .verify import verify

logger = logging.getLogger(__name__)


def generate_keys(t: int, n: int) -> KeyMaterial:
    """
    Run distributed key generation for n participants with threshold t.

    Returns:
    KeyMaterial: The group key and all n key shares, ordered by index.

    Raises:
    ProofVerificationFailed, ShareCountMismatch, ShareVerificationFailed: If a
    participant's round messages are invalid. The whole ceremony aborts.
    GroupKeyMismatch: If participants derive different group keys.
    """
    params = Parameters(t, n)
    indexes = range(1, n + 1)
    participants = [Participant(params, index) for index in indexes]
    mailbox = Mailbox()

    # Round 1
    for participant in participants:
        mailbox.broadcast(participant.index, participant.init_keygen(), indexes)
    for participant in participants:
        participant.verify_round1(mailbox.receive(participant.index))
    logger.info("All participants verified their proofs of secret keys")

    # Round 2
    for participant in participants:
        for share in participant.compute_shares():
            mailbox.send(share.sender, share.receiver, share)
    for participant in participants:
        participant.verify_round2(mailbox.receive(participant.index))
    logger.info("All participants verified their secret shares")

    group_keys: List[GroupKey] = []
    key_shares: List[KeyShare] = []
    for participant in participants:
        group_key, key_share = participant.finalize(participant.public_key())
        group_keys.append(group_key)
        key_shares.append(key_share)

    check_group_keys(group_keys)
    logger.info("Generated %d shares with threshold %d", n, t)
    return KeyMaterial(group_keys[0], tuple(key_shares))


def check_group_keys(group_keys: Sequence[GroupKey]) -> None:
    """
    Raises:
    GroupKeyMismatch: If the group keys are not byte-identical.
    """
    encodings = {group_key.to_bytes() for group_key in group_keys}
    if len(encodings) != 1:
        raise GroupKeyMismatch()


def sign_message(
    key_material: KeyMaterial,
    message: bytes,
    t: int,
    context: bytes = DEFAULT_CONTEXT,
    signers: Optional[Sequence[int]] = None,
    n: Optional[int] = None,
) -> ThresholdSignature:
    """
    Sign a message with a threshold of the key shares.

    Parameters:
    key_material (KeyMaterial): The group key and the available key shares.
    message (bytes): The message to sign.
    t (int): The signing threshold.
    context (bytes): The context string, which verification must repeat.
    signers (Optional[Sequence[int]]): The indexes that sign. Defaults to the
        t lowest available indexes.
    n (Optional[int]): The participant count. Defaults to the highest index
        among the key shares.

    Returns:
    ThresholdSignature: The verified combined signature.

    Raises:
    InsufficientSigners: If fewer than t signers are available or selected.
    InvalidPartialSignature: If a signer's contribution is invalid.
    SignatureVerificationFailed: If the combined signature does not verify.
    """
    shares = sorted(key_material.private_shares, key=lambda share: share.index)
    if n is None:
        n = max([share.index for share in shares] + [len(shares), t])
    params = Parameters(t, n)

    if signers is None:
        if len(shares) < t:
            raise InsufficientSigners(len(shares), t)
        chosen = shares[:t]
    else:
        chosen = [key_material.share(index) for index in signers]

    aggregator = SignatureAggregator(params, key_material.group_key, context, message)

    # One fresh nonce pair per signer for this session
    commitment_shares: Dict[int, CommitmentShare] = {}
    for key_share in chosen:
        commitment_share = generate_commitment_share_lists(key_share.index, 1).take_one()
        commitment_shares[key_share.index] = commitment_share
        aggregator.include_signer(
            key_share.index, commitment_share.commitment, key_share.public_key
        )

    aggregator.finalize_signers()
    message_hash, signer_set = aggregator.signing_inputs()

    for key_share in chosen:
        partial_signature = key_share.sign(
            message_hash,
            key_material.group_key,
            commitment_shares[key_share.index],
            signer_set,
        )
        aggregator.include_partial_signature(partial_signature)

    return aggregator.aggregate()


def validate_signature(
    signature: ThresholdSignature,
    group_key: GroupKey,
    message: bytes,
    context: bytes = DEFAULT_CONTEXT,
) -> None:
    """
    Raises:
    SignatureVerificationFailed: If the signature is invalid.
    """
    verify(signature, group_key, message, context)
    logger.info("Signature is valid")
