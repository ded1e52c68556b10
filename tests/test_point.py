import unittest

from frost_dkg import G, P, Point, Q
from frost_dkg.hashing import compute_message_hash, hash_to_scalar, tagged_hash
from frost_dkg.point import points_equal, random_scalar, scalar_from_bytes, scalar_to_bytes
from frost_dkg.polynomial import Polynomial, derive_public_verification_share, lagrange_coefficient


class Tests(unittest.TestCase):
    def test_doubling(self):
        two_g = Point(
            0xC6047F9441ED7D6D3045406E95C07CD85C778E4B8CEF3CA7ABAC09B95C709EE5,
            0x1AE168FEA63DC339A3C58419466CEAEEF7F632653266D0E1236431A950CFE52A,
        )
        self.assertEqual(G + G, two_g)
        self.assertEqual(2 * G, two_g)
        self.assertEqual(3 * G, two_g + G)
        self.assertEqual(3 * G - G, two_g)

    def test_group_order(self):
        self.assertTrue((Q * G).is_zero())
        self.assertTrue((G - G).is_zero())
        self.assertEqual((Q - 1) * G, -G)
        self.assertEqual((Q + 5) * G, 5 * G)
        self.assertEqual(Point() + G, G)

    def test_scalar_must_be_int(self):
        with self.assertRaises(ValueError):
            1.5 * G

    def test_sec_round_trip(self):
        for point in (G, -G, random_scalar() * G):
            encoded = point.sec_serialize()
            self.assertEqual(len(encoded), 33)
            self.assertEqual(Point.sec_deserialize(encoded), point)
        with self.assertRaises(ValueError):
            Point().sec_serialize()
        with self.assertRaises(ValueError):
            Point.sec_deserialize(G.sec_serialize()[:32])

    def test_xonly_lifts_to_even_y(self):
        point = -G if G.has_even_y() else G
        lifted = Point.xonly_deserialize(point.xonly_serialize())
        self.assertTrue(lifted.has_even_y())
        self.assertEqual(lifted.x, point.x)
        self.assertEqual(lifted.y, P - point.y)

    def test_points_equal(self):
        self.assertTrue(points_equal(G, Point(G.x, G.y)))
        self.assertFalse(points_equal(G, -G))
        self.assertTrue(points_equal(Point(), Point()))
        self.assertFalse(points_equal(Point(), G))

    def test_scalar_encoding(self):
        self.assertEqual(scalar_from_bytes(scalar_to_bytes(Q - 1)), Q - 1)
        with self.assertRaises(ValueError):
            scalar_to_bytes(Q)
        with self.assertRaises(ValueError):
            scalar_from_bytes(b"\xff" * 32)

    def test_tagged_hashes_are_separated(self):
        self.assertNotEqual(tagged_hash(b"A", b"data"), tagged_hash(b"B", b"data"))
        self.assertLess(hash_to_scalar(b"A", b"data"), Q)
        self.assertNotEqual(
            compute_message_hash(b"ab", b"c"), compute_message_hash(b"a", b"bc")
        )

    def test_polynomial(self):
        polynomial = Polynomial((5, 3, 2))
        # 5 + 3x + 2x^2
        self.assertEqual(polynomial.evaluate(0), 5)
        self.assertEqual(polynomial.evaluate(2), 19)
        self.assertEqual(
            derive_public_verification_share(polynomial.commitments(), 2), 19 * G
        )
        polynomial.discard()
        with self.assertRaises(ValueError):
            polynomial.evaluate(1)

    def test_lagrange_interpolation(self):
        polynomial = Polynomial.random(3)
        indexes = (2, 4, 7)
        secret = sum(
            polynomial.evaluate(i) * lagrange_coefficient(indexes, i) for i in indexes
        ) % Q
        self.assertEqual(secret, polynomial.secret)
        with self.assertRaises(ValueError):
            lagrange_coefficient((1, 1, 2), 1)
        with self.assertRaises(ValueError):
            lagrange_coefficient((1, 2), 3)


if __name__ == "__main__":
    unittest.main()
