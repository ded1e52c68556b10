"""
Secret sharing polynomials over the scalar field, their public commitments,
and Lagrange interpolation.

A Polynomial is secret material: it belongs to exactly one participant for the
duration of key generation and is never serialized.
"""

from typing import Iterable, Optional, Sequence, Tuple
from .constants import Q
from .point import Point, G, random_scalar


class Polynomial:
    """A polynomial of degree threshold - 1 with random coefficients."""

    __slots__ = ("_coefficients",)

    def __init__(self, coefficients: Sequence[int]):
        if not coefficients:
            raise ValueError("A polynomial needs at least one coefficient.")
        if not all(isinstance(c, int) for c in coefficients):
            raise TypeError("Coefficients must be integers.")
        self._coefficients: Optional[Tuple[int, ...]] = tuple(
            c % Q for c in coefficients
        )

    @classmethod
    def random(cls, threshold: int) -> "Polynomial":
        # (a_i_0, . . ., a_i_(t - 1)) ⭠ $ ℤ_q
        return cls(tuple(random_scalar() for _ in range(threshold)))

    @property
    def degree(self) -> int:
        return len(self._live_coefficients()) - 1

    @property
    def secret(self) -> int:
        """The constant term a_i_0."""
        return self._live_coefficients()[0]

    def _live_coefficients(self) -> Tuple[int, ...]:
        if self._coefficients is None:
            raise ValueError("Polynomial has been discarded.")
        return self._coefficients

    def evaluate(self, x: int) -> int:
        """
        Evaluate the polynomial at x using Horner's method.

        Parameters:
        x (int): The point at which the polynomial is evaluated.

        Returns:
        int: f(x) reduced modulo Q.
        """
        if not isinstance(x, int):
            raise ValueError("The value of x must be an integer.")

        y = 0
        for coefficient in reversed(self._live_coefficients()):
            y = (y * x + coefficient) % Q
        return y

    def commitments(self) -> Tuple[Point, ...]:
        # C_i = ⟨𝜙_i_0, ..., 𝜙_i_(t - 1)⟩
        # 𝜙_i_j = g^a_i_j, 0 ≤ j ≤ t - 1
        return tuple(coefficient * G for coefficient in self._live_coefficients())

    def discard(self) -> None:
        """Drop the coefficients. Any later use raises ValueError."""
        self._coefficients = None

    def __repr__(self) -> str:
        state = "discarded" if self._coefficients is None else f"degree={self.degree}"
        return f"{self.__class__.__name__}({state})"


def derive_public_verification_share(
    coefficient_commitments: Sequence[Point], index: int
) -> Point:
    """
    Compute g^f(index) from the commitments to f's coefficients, without
    knowing f.

    Parameters:
    coefficient_commitments (Sequence[Point]): Commitments ⟨𝜙_0, ..., 𝜙_(t - 1)⟩.
    index (int): The evaluation point.

    Returns:
    Point: ∑ 𝜙_k * index^k, 0 ≤ k ≤ t - 1
    """
    # Horner's method over the group
    result = Point()
    for commitment in reversed(tuple(coefficient_commitments)):
        result = (index * result) + commitment
    return result


def lagrange_coefficient(
    participant_indexes: Iterable[int], participant_index: int, x: int = 0
) -> int:
    """
    Calculate the Lagrange coefficient of participant_index over the set of
    participant_indexes, evaluated at x.

    Raises:
    ValueError: If the indexes are not unique, or participant_index is not
    one of them.
    """
    participant_indexes = tuple(participant_indexes)
    if len(participant_indexes) != len(set(participant_indexes)):
        raise ValueError("Participant indexes must be unique.")
    if participant_index not in participant_indexes:
        raise ValueError("Participant index must be one of the participant indexes.")

    # λ_i(x) = ∏ (x - p_j)/(p_i - p_j), 1 ≤ j ≤ α, j ≠ i
    numerator = 1
    denominator = 1
    for index in participant_indexes:
        if index == participant_index:
            continue
        numerator = (numerator * (x - index)) % Q
        denominator = (denominator * (participant_index - index)) % Q
    return (numerator * pow(denominator, Q - 2, Q)) % Q
