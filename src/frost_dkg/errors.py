"""
Exceptions raised by the protocol. Each kind of fault has its own class and
carries the participants involved as attributes, so callers can branch on the
kind of failure and on who caused it.
"""

from typing import Optional


class FrostError(Exception):
    """
    Base exception for protocol faults.
    """


class ProofVerificationFailed(FrostError):
    """
    Raised when a participant's proof of knowledge of its secret term does not
    verify against its constant-term commitment.
    """

    def __init__(self, participant: int):
        self.participant = participant
        super().__init__(
            f"Proof of secret key verification failed for participant {participant}"
        )


class ShareCountMismatch(FrostError):
    """
    Raised when a participant does not receive exactly one share from every
    peer.
    """

    def __init__(self, participant: int, expected: int, got: int):
        self.participant = participant
        self.expected = expected
        self.got = got
        super().__init__(
            f"Participant {participant} received incorrect number of shares: "
            f"expected {expected}, got {got}"
        )


class ShareVerificationFailed(FrostError):
    """
    Raised when a secret share does not match the sender's published
    commitments.
    """

    def __init__(self, sender: int, receiver: int):
        self.sender = sender
        self.receiver = receiver
        super().__init__(
            f"Share from participant {sender} to participant {receiver} failed verification"
        )


class GroupKeyMismatch(FrostError):
    """
    Raised when honest participants disagree on the group key, or a finalized
    key share is inconsistent with the group commitments. This indicates an
    implementation bug, not an attack.
    """

    def __init__(self, participant: Optional[int] = None):
        self.participant = participant
        if participant is None:
            message = "Participants computed different group keys"
        else:
            message = f"Group key mismatch detected by participant {participant}"
        super().__init__(message)


class DuplicateSigner(FrostError):
    """
    Raised when a signer index is registered twice in one signing session.
    """

    def __init__(self, signer: int):
        self.signer = signer
        super().__init__(f"Signer {signer} is already included")


class InsufficientSigners(FrostError):
    """
    Raised when fewer signers or partial signatures than the threshold are
    available.
    """

    def __init__(self, have: int, need: int):
        self.have = have
        self.need = need
        super().__init__(f"Insufficient signers: have {have}, need {need}")


class InvalidPartialSignature(FrostError):
    """
    Raised when a signer's partial signature does not verify against its
    public key share.
    """

    def __init__(self, signer: int):
        self.signer = signer
        super().__init__(f"Invalid partial signature from signer {signer}")


class NonceExhausted(FrostError):
    """
    Raised when a signer has no unused nonce commitment pairs left.
    """

    def __init__(self, signer: int):
        self.signer = signer
        super().__init__(f"Signer {signer} has no unused nonce commitments left")


class MalformedKeyMaterial(FrostError):
    """
    Raised when serialized keys or signatures cannot be decoded.
    """


class SignatureVerificationFailed(FrostError):
    """
    Raised when a threshold signature is invalid. Carries no further detail.
    """

    def __init__(self):
        super().__init__("Signature verification failed")
