import logging
from collections import Counter
from dataclasses import dataclass
from itertools import combinations
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple, Union

from Crypto.Random import random
from Crypto.Util.number import bytes_to_long

from field import FieldArithmetic

logger = logging.getLogger(__name__)


class InvalidShareError(ValueError):
    def __init__(self, message):
        self.message = f"Invalid share set. {message}"
        super().__init__(self.message)


class Share(NamedTuple):
    x: int
    y: int

    def __str__(self):
        return f"({self.x}, {self.y})"


def _normalize(shares: Iterable, field: FieldArithmetic) -> List[Share]:
    """Reduce every share into the field and reject the degenerate ones."""
    points = []
    for share in shares:
        try:
            x, y = share
        except (TypeError, ValueError):
            raise InvalidShareError(f"Expected an (x, y) pair, got {share!r}.") from None
        if any(isinstance(v, bool) or not isinstance(v, int) for v in (x, y)):
            raise InvalidShareError(f"Share coordinates must be integers, got {share!r}.")
        x = field.reduce(x)
        if x == 0:
            raise InvalidShareError("x = 0 would expose the secret and is not a valid share coordinate.")
        points.append(Share(x, field.reduce(y)))
    if not points:
        raise InvalidShareError("At least one share is required.")
    return points


@dataclass(frozen=True)
class SecretReconstructor:
    field: FieldArithmetic

    def lagrange_coefficient(self, xs: Sequence[int], i: int) -> int:
        """Lagrange basis polynomial L_i evaluated at x = 0."""
        f = self.field
        xi = xs[i]
        numerator = 1
        denominator = 1
        for j, xj in enumerate(xs):
            if i == j:
                continue
            # (0 - xj) / (xi - xj)
            numerator = f.multiply(numerator, f.negate(xj))
            denominator = f.multiply(denominator, f.subtract(xi, xj))
        return f.multiply(numerator, f.mod_inverse(denominator))

    def reconstruct(self, shares: Iterable) -> int:
        """Recover the secret (polynomial at x=0) from at least t shares.

        Raises NonInvertibleError if two shares have the same x coordinate
        modulo p, and InvalidShareError for an empty or malformed set.
        """
        f = self.field
        points = _normalize(shares, f)
        xs = [point.x for point in points]
        secret = 0
        for i, point in enumerate(points):
            coeff = self.lagrange_coefficient(xs, i)
            secret = f.add(secret, f.multiply(point.y, coeff))
            logger.debug("share %d: x=%d, L_i(0)=%d", i + 1, point.x, coeff)
        logger.debug("reconstructed secret from %d shares", len(points))
        return secret


def reconstruct_secret(prime: int, shares: Iterable) -> int:
    return SecretReconstructor(FieldArithmetic(prime)).reconstruct(shares)


def eval_poly(poly, x, p):
    """Evaluate polynomial at x modulo p. poly is list of coefficients [a_0, a_1, ..., a_d]."""
    result = 0
    for coeff in reversed(poly):
        result = (result * x + coeff) % p
    return result


@dataclass(frozen=True)
class SecretSplitter:
    field: FieldArithmetic
    threshold: int
    """Number of shares needed to recover the secret."""
    num_shares: int
    """Number of shares handed out."""

    def __post_init__(self):
        if self.threshold < 1:
            raise InvalidShareError("Threshold must be at least 1.")
        if self.threshold > self.num_shares:
            raise InvalidShareError("Threshold cannot be greater than the number of shares.")
        if self.num_shares >= self.field.prime:
            raise InvalidShareError("Number of shares must be smaller than the prime.")

    def random_coefficients(self) -> List[int]:
        return [random.randrange(1, self.field.prime) for _ in range(self.threshold - 1)]

    def split(self, secret: Union[int, bytes], coefficients: Optional[Sequence[int]] = None) -> List[Share]:
        """Generate num_shares shares at x = 1..n with a degree threshold-1 polynomial."""
        p = self.field.prime
        if isinstance(secret, bytes):
            secret = bytes_to_long(secret)
        if not self.field.contains(secret):
            raise InvalidShareError(f"Secret must lie in [0, {p}).")
        if coefficients is None:
            coefficients = self.random_coefficients()
        elif len(coefficients) != self.threshold - 1:
            raise InvalidShareError(
                f"Expected {self.threshold - 1} coefficients, got {len(coefficients)}."
            )
        poly = [secret] + [self.field.reduce(c) for c in coefficients]
        shares = [Share(x, eval_poly(poly, x, p)) for x in range(1, self.num_shares + 1)]
        logger.info("split secret into %d shares, threshold %d", self.num_shares, self.threshold)
        return shares


def generate_shares(secret, t, n, p):
    """Generate n shares with threshold t, using prime field p."""
    return SecretSplitter(FieldArithmetic(p), t, n).split(secret)


def cross_validate(shares: Sequence, threshold: int, prime: int) -> Dict[int, List[Tuple[Share, ...]]]:
    """Reconstruct from every threshold-sized subset.

    Returns a mapping from each recovered value to the subsets that produced it.
    """
    field = FieldArithmetic(prime)
    points = _normalize(shares, field)
    if threshold < 1 or threshold > len(points):
        raise InvalidShareError(
            f"Threshold must be between 1 and {len(points)}, got {threshold}."
        )
    reconstructor = SecretReconstructor(field)
    results: Dict[int, List[Tuple[Share, ...]]] = {}
    for subset in combinations(points, threshold):
        secret = reconstructor.reconstruct(subset)
        results.setdefault(secret, []).append(subset)
    logger.info("cross-validated %d subsets, %d distinct values", sum(len(v) for v in results.values()), len(results))
    return results


def consensus_secret(shares: Sequence, threshold: int, prime: int) -> Tuple[int, List[Share]]:
    """Return the value recovered by most subsets and the shares never used to reach it."""
    results = cross_validate(shares, threshold, prime)
    tally = Counter({secret: len(subsets) for secret, subsets in results.items()})
    secret, _ = tally.most_common(1)[0]
    trusted = {share for subset in results[secret] for share in subset}
    points = _normalize(shares, FieldArithmetic(prime))
    suspicious = [share for share in points if share not in trusted]
    if suspicious:
        logger.warning("shares inconsistent with the consensus secret: %s", ", ".join(map(str, suspicious)))
    return secret, suspicious


def verify_reconstruction(expected: int, reconstructed: int) -> bool:
    is_valid = expected == reconstructed
    if is_valid:
        logger.info("reconstructed secret matches the expected value")
    else:
        logger.warning("reconstructed secret %d does not match expected %d", reconstructed, expected)
    return is_valid
