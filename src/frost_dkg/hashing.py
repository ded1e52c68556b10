"""
Domain separated hashing. Every hash computed by the protocol goes through
tagged_hash, so that a digest produced for one purpose can never be replayed as
the input of another.
"""

from hashlib import sha256
from .constants import Q, MESSAGE_TAG


def tagged_hash(tag: bytes, *parts: bytes) -> bytes:
    """
    Compute the BIP340 tagged hash SHA256(SHA256(tag) || SHA256(tag) || parts).

    Parameters:
    tag (bytes): The domain separation tag.
    parts (bytes): The byte strings to hash, concatenated in order.

    Returns:
    bytes: The 32-byte digest.
    """
    tag_hash = sha256(tag).digest()
    digest = sha256()
    digest.update(tag_hash)
    digest.update(tag_hash)
    for part in parts:
        digest.update(part)
    return digest.digest()


def hash_to_scalar(tag: bytes, *parts: bytes) -> int:
    """Tagged hash of the parts, reduced modulo the curve order."""
    return int.from_bytes(tagged_hash(tag, *parts), "big") % Q


def compute_message_hash(context: bytes, message: bytes) -> bytes:
    """
    Bind a message to the context string it is signed under.

    The context is length prefixed so that no (context, message) pair can
    collide with another split of the same bytes.
    """
    if not isinstance(context, (bytes, bytearray)):
        raise TypeError("Context must be bytes.")
    if not isinstance(message, (bytes, bytearray)):
        raise TypeError("Message must be bytes.")
    return tagged_hash(
        MESSAGE_TAG, len(context).to_bytes(8, "big"), bytes(context), bytes(message)
    )


def encode_index(index: int) -> bytes:
    """Encode a participant index as 4 big-endian bytes."""
    return index.to_bytes(4, "big")
