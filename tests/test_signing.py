import unittest

from frost_dkg import (
    AggregatorState,
    DuplicateSigner,
    G,
    GroupKey,
    InsufficientSigners,
    InvalidPartialSignature,
    KeyMaterial,
    KeyShare,
    PartialSignature,
    Parameters,
    Q,
    SignatureAggregator,
    SignatureVerificationFailed,
    ThresholdSignature,
    compute_message_hash,
    generate_commitment_share_lists,
    generate_keys,
    is_valid,
    sign_message,
    validate_signature,
    verify,
)
from frost_dkg.constants import DEFAULT_CONTEXT
from frost_dkg.polynomial import Polynomial

MESSAGE = b"hi, this is a test"


def dealer_key_material(t, n, even_y):
    """Key material from a known polynomial, with the group key's parity forced."""
    polynomial = Polynomial.random(t)
    if (polynomial.secret * G).has_even_y() != even_y:
        # -f(x) has the negated secret, so the opposite parity
        polynomial = Polynomial(
            tuple((Q - c) % Q for c in polynomial._live_coefficients())
        )
    shares = tuple(KeyShare(i, polynomial.evaluate(i)) for i in range(1, n + 1))
    return KeyMaterial(GroupKey(polynomial.secret * G), shares)


def run_session(key_material, t, indexes, message=MESSAGE, context=DEFAULT_CONTEXT):
    """Drive a signing session by hand, returning the aggregator and signer inputs."""
    params = Parameters(t, len(key_material.private_shares))
    aggregator = SignatureAggregator(params, key_material.group_key, context, message)
    commitment_shares = {}
    for index in indexes:
        key_share = key_material.share(index)
        commitment_shares[index] = generate_commitment_share_lists(index, 1).take_one()
        aggregator.include_signer(
            index, commitment_shares[index].commitment, key_share.public_key
        )
    aggregator.finalize_signers()
    message_hash, signers = aggregator.signing_inputs()
    partial_signatures = {
        index: key_material.share(index).sign(
            message_hash, key_material.group_key, commitment_shares[index], signers
        )
        for index in indexes
    }
    return aggregator, partial_signatures


class Tests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.keys = generate_keys(3, 5)

    def test_sign_and_verify(self):
        signature = sign_message(self.keys, MESSAGE, 3)
        verify(signature, self.keys.group_key, MESSAGE, DEFAULT_CONTEXT)
        validate_signature(signature, self.keys.group_key, MESSAGE)

    def test_every_subset_of_size_t(self):
        for signers in ((1, 2, 3), (1, 2, 5), (2, 4, 5), (3, 4, 5), (1, 3, 5)):
            signature = sign_message(self.keys, MESSAGE, 3, signers=signers)
            self.assertTrue(
                is_valid(signature, self.keys.group_key, MESSAGE, DEFAULT_CONTEXT)
            )

    def test_more_signers_than_threshold(self):
        signature = sign_message(self.keys, MESSAGE, 3, signers=(1, 2, 3, 4))
        self.assertTrue(is_valid(signature, self.keys.group_key, MESSAGE, DEFAULT_CONTEXT))

    def test_sign_with_higher_threshold(self):
        signature = sign_message(self.keys, MESSAGE, 4)
        self.assertTrue(is_valid(signature, self.keys.group_key, MESSAGE, DEFAULT_CONTEXT))

    def test_different_message_fails(self):
        signature = sign_message(self.keys, MESSAGE, 3)
        with self.assertRaises(SignatureVerificationFailed):
            verify(signature, self.keys.group_key, b"different message", DEFAULT_CONTEXT)

    def test_flipped_message_byte_fails(self):
        signature = sign_message(self.keys, MESSAGE, 3)
        for position in (0, len(MESSAGE) // 2, len(MESSAGE) - 1):
            flipped = bytearray(MESSAGE)
            flipped[position] ^= 0x01
            self.assertFalse(
                is_valid(signature, self.keys.group_key, bytes(flipped), DEFAULT_CONTEXT)
            )

    def test_different_context_fails(self):
        signature = sign_message(self.keys, MESSAGE, 3, context=b"ONE CONTEXT")
        self.assertTrue(is_valid(signature, self.keys.group_key, MESSAGE, b"ONE CONTEXT"))
        with self.assertRaises(SignatureVerificationFailed):
            verify(signature, self.keys.group_key, MESSAGE, b"ANOTHER CONTEXT")

    def test_wrong_group_key_fails(self):
        signature = sign_message(self.keys, MESSAGE, 3)
        other = generate_keys(1, 1).group_key
        self.assertFalse(is_valid(signature, other, MESSAGE, DEFAULT_CONTEXT))

    def test_tampered_signature_fails(self):
        signature = sign_message(self.keys, MESSAGE, 3)
        tampered = ThresholdSignature(signature.nonce_commitment, (signature.z + 1) % Q)
        self.assertFalse(is_valid(tampered, self.keys.group_key, MESSAGE, DEFAULT_CONTEXT))

    def test_insufficient_signers(self):
        with self.assertRaises(InsufficientSigners) as cm:
            sign_message(self.keys, MESSAGE, 3, signers=(1, 2))
        self.assertEqual(cm.exception.have, 2)
        self.assertEqual(cm.exception.need, 3)

    def test_insufficient_shares_available(self):
        partial_keys = KeyMaterial(self.keys.group_key, self.keys.private_shares[:2])
        with self.assertRaises(InsufficientSigners):
            sign_message(partial_keys, MESSAGE, 3, n=5)

    def test_below_key_threshold_never_verifies(self):
        # Signing with threshold 2 against a threshold 3 key cannot produce a
        # valid signature
        with self.assertRaises(SignatureVerificationFailed):
            sign_message(self.keys, MESSAGE, 2)

    def test_group_key_parity(self):
        for even_y in (True, False):
            key_material = dealer_key_material(2, 3, even_y)
            self.assertEqual(key_material.group_key.has_even_y, even_y)
            # Enough sessions to hit both parities of R
            for _ in range(4):
                signature = sign_message(key_material, MESSAGE, 2, signers=(2, 3))
                self.assertTrue(
                    is_valid(signature, key_material.group_key, MESSAGE, DEFAULT_CONTEXT)
                )


class AggregatorTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.keys = generate_keys(3, 5)

    def test_session(self):
        aggregator, partial_signatures = run_session(self.keys, 3, (4, 2, 1))
        self.assertEqual([s.index for s in aggregator.signers], [1, 2, 4])
        for index in (1, 2, 4):
            aggregator.include_partial_signature(partial_signatures[index])
        signature = aggregator.aggregate()
        self.assertEqual(aggregator.state, AggregatorState.AGGREGATED)
        self.assertTrue(
            signature.verify(
                self.keys.group_key, compute_message_hash(DEFAULT_CONTEXT, MESSAGE)
            )
        )

    def test_corrupted_partial_signature_names_signer(self):
        aggregator, partial_signatures = run_session(self.keys, 3, (1, 2, 3))
        aggregator.include_partial_signature(partial_signatures[1])
        corrupted = PartialSignature(2, (partial_signatures[2].z + 1) % Q)
        with self.assertRaises(InvalidPartialSignature) as cm:
            aggregator.include_partial_signature(corrupted)
        self.assertEqual(cm.exception.signer, 2)
        self.assertEqual(aggregator.state, AggregatorState.FAILED)
        with self.assertRaises(ValueError):
            aggregator.aggregate()

    def test_partial_signature_for_other_session_rejected(self):
        first, first_partials = run_session(self.keys, 3, (1, 2, 3))
        second, _ = run_session(self.keys, 3, (1, 2, 3))
        with self.assertRaises(InvalidPartialSignature) as cm:
            second.include_partial_signature(first_partials[3])
        self.assertEqual(cm.exception.signer, 3)

    def test_retry_without_faulty_signer(self):
        aggregator, partial_signatures = run_session(self.keys, 3, (1, 2, 3))
        with self.assertRaises(InvalidPartialSignature) as cm:
            aggregator.include_partial_signature(
                PartialSignature(3, (partial_signatures[3].z + 5) % Q)
            )
        faulty = cm.exception.signer
        signers = [i for i in (1, 2, 3, 4) if i != faulty]
        signature = sign_message(self.keys, MESSAGE, 3, signers=signers)
        self.assertTrue(is_valid(signature, self.keys.group_key, MESSAGE, DEFAULT_CONTEXT))

    def test_duplicate_signer(self):
        params = Parameters(3, 5)
        aggregator = SignatureAggregator(params, self.keys.group_key, DEFAULT_CONTEXT, MESSAGE)
        pool = generate_commitment_share_lists(1, 2)
        aggregator.include_signer(1, pool.take_one().commitment, self.keys.share(1).public_key)
        with self.assertRaises(DuplicateSigner) as cm:
            aggregator.include_signer(
                1, pool.take_one().commitment, self.keys.share(1).public_key
            )
        self.assertEqual(cm.exception.signer, 1)

    def test_finalize_with_too_few_signers(self):
        params = Parameters(3, 5)
        aggregator = SignatureAggregator(params, self.keys.group_key, DEFAULT_CONTEXT, MESSAGE)
        for index in (1, 2):
            aggregator.include_signer(
                index,
                generate_commitment_share_lists(index, 1).take_one().commitment,
                self.keys.share(index).public_key,
            )
        with self.assertRaises(InsufficientSigners) as cm:
            aggregator.finalize_signers()
        self.assertEqual((cm.exception.have, cm.exception.need), (2, 3))
        self.assertEqual(aggregator.state, AggregatorState.FAILED)

    def test_signer_index_out_of_range(self):
        aggregator = SignatureAggregator(
            Parameters(3, 5), self.keys.group_key, DEFAULT_CONTEXT, MESSAGE
        )
        commitment = generate_commitment_share_lists(6, 1).take_one().commitment
        with self.assertRaises(ValueError):
            aggregator.include_signer(6, commitment, self.keys.share(1).public_key)

    def test_aggregate_with_missing_partial_signature(self):
        aggregator, partial_signatures = run_session(self.keys, 3, (1, 2, 3))
        aggregator.include_partial_signature(partial_signatures[1])
        aggregator.include_partial_signature(partial_signatures[2])
        with self.assertRaises(InsufficientSigners):
            aggregator.aggregate()

    def test_aggregate_without_partial_signatures(self):
        aggregator, _ = run_session(self.keys, 3, (1, 2, 3))
        with self.assertRaises(InsufficientSigners) as cm:
            aggregator.aggregate()
        self.assertEqual((cm.exception.have, cm.exception.need), (0, 3))
        self.assertEqual(aggregator.state, AggregatorState.FAILED)

    def test_partial_signature_from_non_member(self):
        aggregator, _ = run_session(self.keys, 3, (1, 2, 3))
        with self.assertRaises(ValueError):
            aggregator.include_partial_signature(PartialSignature(5, 1))
        with self.assertRaises(ValueError):
            aggregator.verify_partial_signature(PartialSignature(5, 1))

    def test_duplicate_partial_signature(self):
        aggregator, partial_signatures = run_session(self.keys, 3, (1, 2, 3))
        aggregator.include_partial_signature(partial_signatures[1])
        with self.assertRaises(ValueError):
            aggregator.include_partial_signature(partial_signatures[1])

    def test_no_signers_after_finalize(self):
        aggregator, _ = run_session(self.keys, 3, (1, 2, 3))
        with self.assertRaises(ValueError):
            aggregator.include_signer(
                4,
                generate_commitment_share_lists(4, 1).take_one().commitment,
                self.keys.share(4).public_key,
            )

    def test_nonce_pair_cannot_sign_twice(self):
        params = Parameters(3, 5)
        aggregator = SignatureAggregator(params, self.keys.group_key, DEFAULT_CONTEXT, MESSAGE)
        shares = {}
        for index in (1, 2, 3):
            shares[index] = generate_commitment_share_lists(index, 1).take_one()
            aggregator.include_signer(
                index, shares[index].commitment, self.keys.share(index).public_key
            )
        aggregator.finalize_signers()
        message_hash, signers = aggregator.signing_inputs()
        self.keys.share(1).sign(message_hash, self.keys.group_key, shares[1], signers)
        self.assertTrue(shares[1].consumed)
        with self.assertRaises(ValueError):
            self.keys.share(1).sign(message_hash, self.keys.group_key, shares[1], signers)

    def test_sign_with_unpublished_nonce(self):
        aggregator, _ = run_session(self.keys, 3, (1, 2, 3))
        message_hash, signers = aggregator.signing_inputs()
        stray = generate_commitment_share_lists(1, 1).take_one()
        with self.assertRaises(ValueError):
            self.keys.share(1).sign(message_hash, self.keys.group_key, stray, signers)
        self.assertFalse(stray.consumed)

    def test_sign_outside_signer_set(self):
        aggregator, _ = run_session(self.keys, 3, (1, 2, 3))
        message_hash, signers = aggregator.signing_inputs()
        stray = generate_commitment_share_lists(4, 1).take_one()
        with self.assertRaises(ValueError):
            self.keys.share(4).sign(message_hash, self.keys.group_key, stray, signers)


if __name__ == "__main__":
    unittest.main()
