"""
This module defines the Point class, which represents points on the secp256k1
elliptic curve, together with the scalar helpers used throughout the protocol.

Points are stored in affine coordinates. Scalar multiplication runs in Jacobian
coordinates so that a single field inversion is needed per multiplication.
Points decoded from bytes are always checked to lie on the curve.
"""

from __future__ import annotations
import hmac
import secrets
from typing import Optional, Tuple
from .constants import P, Q, G_x, G_y, SCALAR_SIZE, SEC_POINT_SIZE, XONLY_POINT_SIZE

_Jacobian = Optional[Tuple[int, int, int]]


def _lift_x(x: int) -> Optional[int]:
    """Return the even y-coordinate for x, or None if x is not on the curve."""
    if not 0 <= x < P:
        return None
    y_squared = (pow(x, 3, P) + 7) % P
    y = pow(y_squared, (P + 1) // 4, P)
    if pow(y, 2, P) != y_squared:
        return None
    return y if y % 2 == 0 else P - y


def _jacobian_double(p: _Jacobian) -> _Jacobian:
    if p is None or p[1] == 0:
        return None
    x, y, z = p
    y_squared = (y * y) % P
    s = (4 * x * y_squared) % P
    m = (3 * x * x) % P
    x3 = (m * m - 2 * s) % P
    y3 = (m * (s - x3) - 8 * y_squared * y_squared) % P
    z3 = (2 * y * z) % P
    return (x3, y3, z3)


def _jacobian_add(p: _Jacobian, q: _Jacobian) -> _Jacobian:
    if p is None:
        return q
    if q is None:
        return p
    x1, y1, z1 = p
    x2, y2, z2 = q
    z1_squared = (z1 * z1) % P
    z2_squared = (z2 * z2) % P
    u1 = (x1 * z2_squared) % P
    u2 = (x2 * z1_squared) % P
    s1 = (y1 * z2_squared * z2) % P
    s2 = (y2 * z1_squared * z1) % P
    if u1 == u2:
        if s1 != s2:
            return None
        return _jacobian_double(p)
    h = (u2 - u1) % P
    r = (s2 - s1) % P
    h_squared = (h * h) % P
    h_cubed = (h_squared * h) % P
    x3 = (r * r - h_cubed - 2 * u1 * h_squared) % P
    y3 = (r * (u1 * h_squared - x3) - s1 * h_cubed) % P
    z3 = (h * z1 * z2) % P
    return (x3, y3, z3)


class Point:
    """Class representing an elliptic curve point."""

    def __init__(self, x: Optional[int] = None, y: Optional[int] = None):
        """
        Initialize a point on the curve.

        Parameters:
        x (Optional[int], optional): The x-coordinate of the point.
            Defaults to None, representing the point at infinity.
        y (Optional[int], optional): The y-coordinate of the point.
            Defaults to None, also representing the point at infinity.
        """
        self.x = x
        self.y = y

    @classmethod
    def sec_deserialize(cls, data: bytes) -> Point:
        """
        Deserialize a SEC 1 compressed point.

        Parameters:
        data (bytes): 33 bytes, a 0x02 or 0x03 prefix followed by the x-coordinate.

        Returns:
        Point: The decoded point, with the parity given by the prefix.

        Raises:
        ValueError: If the input has the wrong length, an unknown prefix, or
        does not encode a point on the curve.
        """
        if not isinstance(data, (bytes, bytearray)) or len(data) != SEC_POINT_SIZE:
            raise ValueError(
                f"Input must be exactly {SEC_POINT_SIZE} bytes long for SEC 1 compressed format."
            )
        if data[0] not in (2, 3):
            raise ValueError("Invalid SEC 1 compressed prefix.")

        x = int.from_bytes(data[1:], "big")
        y = _lift_x(x)
        if y is None:
            raise ValueError("Unable to compute point from x-coordinate.")
        if data[0] == 3:
            y = P - y
        return cls(x, y)

    def sec_serialize(self) -> bytes:
        """
        Serialize the point to its 33-byte SEC 1 compressed format.

        Raises:
        ValueError: If the point is at infinity.
        """
        if self.x is None or self.y is None:
            raise ValueError("Cannot serialize the point at infinity.")

        prefix = b"\x02" if self.y % 2 == 0 else b"\x03"
        return prefix + self.x.to_bytes(XONLY_POINT_SIZE, "big")

    @classmethod
    def xonly_deserialize(cls, data: bytes) -> Point:
        """
        Deserialize a 32-byte x-only encoding to the point with even y.

        Raises:
        ValueError: If the input has the wrong length or the x-coordinate is
        not on the curve.
        """
        if not isinstance(data, (bytes, bytearray)) or len(data) != XONLY_POINT_SIZE:
            raise ValueError(
                f"Input must be exactly {XONLY_POINT_SIZE} bytes long for x-only format."
            )
        x = int.from_bytes(data, "big")
        y = _lift_x(x)
        if y is None:
            raise ValueError("Unable to compute point from x-coordinate.")
        return cls(x, y)

    def xonly_serialize(self) -> bytes:
        """Serialize the x-coordinate of the point to 32 big-endian bytes."""
        if self.x is None:
            raise ValueError("The x-coordinate is not finite.")

        return self.x.to_bytes(XONLY_POINT_SIZE, "big")

    def is_zero(self) -> bool:
        """Check if the point is the point at infinity."""
        return self.x is None or self.y is None

    def has_even_y(self) -> bool:
        if self.y is None:
            raise ValueError("The point at infinity has no y-coordinate.")
        return self.y % 2 == 0

    def _to_jacobian(self) -> _Jacobian:
        if self.is_zero():
            return None
        return (self.x, self.y, 1)

    @classmethod
    def _from_jacobian(cls, p: _Jacobian) -> Point:
        if p is None or p[2] == 0:
            return cls()
        x, y, z = p
        z_inv = pow(z, P - 2, P)
        z_inv_squared = (z_inv * z_inv) % P
        return cls((x * z_inv_squared) % P, (y * z_inv_squared * z_inv) % P)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Point):
            return NotImplemented
        return self.x == other.x and self.y == other.y

    def __hash__(self) -> int:
        return hash((self.x, self.y))

    def __neg__(self) -> Point:
        if self.x is None or self.y is None:
            return self

        return self.__class__(self.x, (P - self.y) % P)

    def __add__(self, other: Point) -> Point:
        if not isinstance(other, Point):
            raise ValueError("The other object must be an instance of Point")

        return self._from_jacobian(
            _jacobian_add(self._to_jacobian(), other._to_jacobian())
        )

    def __sub__(self, other: Point) -> Point:
        if not isinstance(other, Point):
            raise ValueError("The other object must be an instance of Point")

        return self + -other

    def __rmul__(self, scalar: int) -> Point:
        """
        Multiply this point by an integer scalar, reduced modulo the curve
        order, using double-and-add over Jacobian coordinates.

        Raises:
        ValueError: If the scalar is not an integer.
        """
        if not isinstance(scalar, int):
            raise ValueError("The scalar must be an integer")
        scalar = scalar % Q

        result: _Jacobian = None
        addend = self._to_jacobian()
        while scalar:
            if scalar & 1:
                result = _jacobian_add(result, addend)
            addend = _jacobian_double(addend)
            scalar >>= 1

        return self._from_jacobian(result)

    def __str__(self) -> str:
        if self.is_zero():
            return "0"
        return f"X: 0x{self.x:x}\nY: 0x{self.y:x}"

    def __repr__(self) -> str:
        if self.is_zero():
            return f"{self.__class__.__name__}(x=None, y=None)"
        return f"{self.__class__.__name__}(x={self.x}, y={self.y})"


def points_equal(first: Point, second: Point) -> bool:
    """
    Compare two points through their encodings with a constant-time digest
    comparison. The point at infinity only equals itself.
    """
    if first.is_zero() or second.is_zero():
        return first.is_zero() and second.is_zero()
    return hmac.compare_digest(first.sec_serialize(), second.sec_serialize())


def scalar_to_bytes(scalar: int) -> bytes:
    """Encode a scalar as 32 big-endian bytes."""
    if not isinstance(scalar, int) or not 0 <= scalar < Q:
        raise ValueError("Scalar must be an integer in the range [0, Q).")
    return scalar.to_bytes(SCALAR_SIZE, "big")


def scalar_from_bytes(data: bytes) -> int:
    """
    Decode 32 big-endian bytes to a scalar.

    Raises:
    ValueError: If the input has the wrong length or is not reduced modulo Q.
    """
    if not isinstance(data, (bytes, bytearray)) or len(data) != SCALAR_SIZE:
        raise ValueError(f"Scalar encoding must be exactly {SCALAR_SIZE} bytes.")
    scalar = int.from_bytes(data, "big")
    if scalar >= Q:
        raise ValueError("Scalar encoding is not reduced modulo the curve order.")
    return scalar


def random_scalar() -> int:
    """Draw a uniformly random nonzero scalar."""
    # 1 + [0, Q - 1) covers [1, Q)
    return 1 + secrets.randbelow(Q - 1)


# The generator point G
G: Point = Point(G_x, G_y)
