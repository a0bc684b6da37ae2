from dataclasses import dataclass


class NonInvertibleError(ArithmeticError):
    def __init__(self, value, prime):
        self.value = value
        self.prime = prime
        self.message = f"No modular inverse. {value} is not invertible modulo {prime}."
        super().__init__(self.message)


def modinv(a, p):
    """Modular inverse using Extended Euclidean Algorithm."""
    low, high = a % p, p
    if low == 0:
        raise NonInvertibleError(a, p)
    lm, hm = 1, 0
    while low > 1:
        r = high // low
        nm, new = hm - lm * r, high - low * r
        lm, low, hm, high = nm, new, lm, low
    if low != 1:
        # gcd(a, p) > 1, only possible when p is not prime
        raise NonInvertibleError(a, p)
    return lm % p


@dataclass(frozen=True)
class FieldArithmetic:
    prime: int
    """The prime defining GF(p)."""

    def reduce(self, a: int) -> int:
        return a % self.prime

    def contains(self, a: int) -> bool:
        return 0 <= a < self.prime

    def add(self, a: int, b: int) -> int:
        return (a + b) % self.prime

    def subtract(self, a: int, b: int) -> int:
        # Python's % already lands in [0, p) for negative operands
        return (a - b) % self.prime

    def multiply(self, a: int, b: int) -> int:
        return (a * b) % self.prime

    def negate(self, a: int) -> int:
        return (self.prime - a) % self.prime

    def mod_inverse(self, a: int) -> int:
        return modinv(a, self.prime)

    def divide(self, a: int, b: int) -> int:
        return self.multiply(a, self.mod_inverse(b))

    def __repr__(self):
        return f"FieldArithmetic(GF({self.prime}))"
