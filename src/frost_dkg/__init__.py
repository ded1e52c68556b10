"""
Copyright (c) 2026 frost-dkg developers

Distributed under the MIT software license, see the accompanying file LICENSE
or http://www.opensource.org/licenses/mit-license.php.

This code has not been audited. Do not use it to protect real funds.

This package implements FROST (Flexible Round-Optimized Schnorr Threshold)
signatures over secp256k1 with a two-round distributed key generation. The
resulting signatures are ordinary BIP340 Schnorr signatures.

Modules:
- point, hashing, constants: curve arithmetic, encodings and tagged hashes.
- polynomial: secret sharing polynomials and Lagrange interpolation.
- participant: one party's side of distributed key generation.
- keys: group keys, key shares, key material and threshold signatures.
- nonces: pools of single-use nonce commitments.
- signing, aggregator: the signing session and partial signature checks.
- verify: stateless signature verification.
- transport: an in-process mailbox for round messages.
- ceremony: key generation and signing with every participant in one process.
- errors: the exceptions raised for protocol faults.
"""

from .point import Point, G
from .constants import P, Q
from .errors import (
    FrostError,
    ProofVerificationFailed,
    ShareCountMismatch,
    ShareVerificationFailed,
    GroupKeyMismatch,
    DuplicateSigner,
    InsufficientSigners,
    InvalidPartialSignature,
    NonceExhausted,
    MalformedKeyMaterial,
    SignatureVerificationFailed,
)
from .hashing import compute_message_hash
from .keys import GroupKey, KeyMaterial, KeyShare, Parameters, ThresholdSignature
from .nonces import CommitmentShare, CommitmentShareList, NonceCommitment
from .nonces import generate_commitment_share_lists
from .participant import DKGState, Participant, ProofOfKnowledge, Round1Package, SecretShare
from .signing import PartialSignature, Signer
from .aggregator import AggregatorState, SignatureAggregator
from .verify import is_valid, verify
from .transport import Mailbox
from .ceremony import generate_keys, sign_message, validate_signature
