"""
Stateless verification of threshold signatures. A threshold signature is an
ordinary BIP340 Schnorr signature, so verification needs only the group key,
the message and the context string it was signed under, and nothing about who
signed.
"""

import logging
from .errors import SignatureVerificationFailed
from .hashing import compute_message_hash
from .keys import GroupKey, ThresholdSignature

logger = logging.getLogger(__name__)


def is_valid(
    signature: ThresholdSignature, group_key: GroupKey, message: bytes, context: bytes
) -> bool:
    """Return True iff signature is valid for message under group_key and context."""
    message_hash = compute_message_hash(context, message)
    return signature.verify(group_key, message_hash)


def verify(
    signature: ThresholdSignature, group_key: GroupKey, message: bytes, context: bytes
) -> None:
    """
    Verify a threshold signature.

    Raises:
    SignatureVerificationFailed: If the signature is invalid. No detail about
    why is given.
    """
    if not is_valid(signature, group_key, message, context):
        logger.debug("Rejected threshold signature")
        raise SignatureVerificationFailed()
