import threading
import unittest

from frost_dkg import (
    CommitmentShareList,
    G,
    NonceCommitment,
    NonceExhausted,
    generate_commitment_share_lists,
)


class Tests(unittest.TestCase):
    def test_generate(self):
        pool = generate_commitment_share_lists(3, 4)
        self.assertIsInstance(pool, CommitmentShareList)
        self.assertEqual(pool.signer, 3)
        self.assertEqual(len(pool), 4)
        self.assertEqual(len(pool.public_commitments()), 4)

        share = pool.take_one()
        self.assertEqual(share.signer, 3)
        hiding, binding = share.consume()
        self.assertEqual(share.commitment, NonceCommitment(hiding * G, binding * G))

    def test_take_one_removes_share(self):
        pool = generate_commitment_share_lists(1, 2)
        first_commitment = pool.public_commitments()[0]
        share = pool.take_one()
        self.assertEqual(share.commitment, first_commitment)
        self.assertEqual(len(pool), 1)
        self.assertNotIn(first_commitment, pool.public_commitments())

    def test_exhausted(self):
        pool = generate_commitment_share_lists(7, 1)
        pool.take_one()
        with self.assertRaises(NonceExhausted) as cm:
            pool.take_one()
        self.assertEqual(cm.exception.signer, 7)

        with self.assertRaises(NonceExhausted):
            generate_commitment_share_lists(2, 0).take_one()

    def test_draws_never_repeat(self):
        k = 16
        pool = generate_commitment_share_lists(1, k)
        draws = [pool.take_one() for _ in range(k)]
        commitments = [share.commitment.serialize() for share in draws]
        for i in range(k):
            for j in range(i + 1, k):
                self.assertIsNot(draws[i], draws[j])
                self.assertNotEqual(commitments[i], commitments[j])

    def test_consume_once(self):
        share = generate_commitment_share_lists(1, 1).take_one()
        self.assertFalse(share.consumed)
        share.consume()
        self.assertTrue(share.consumed)
        with self.assertRaises(ValueError):
            share.consume()

    def test_concurrent_take_one(self):
        count = 40
        pool = generate_commitment_share_lists(1, count)
        taken = []
        lock = threading.Lock()

        def worker():
            while True:
                try:
                    share = pool.take_one()
                except NonceExhausted:
                    return
                with lock:
                    taken.append(share)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(len(taken), count)
        self.assertEqual(len({id(share) for share in taken}), count)
        self.assertEqual(len(pool), 0)

    def test_invalid_arguments(self):
        with self.assertRaises(ValueError):
            generate_commitment_share_lists(0, 1)
        with self.assertRaises(ValueError):
            generate_commitment_share_lists(1, -1)


if __name__ == "__main__":
    unittest.main()
