from dataclasses import dataclass
from typing import Optional

from sympy import isprime

from field import FieldArithmetic

# === Global Parameters ===
# 257-bit prime used by the share files this tool reads
DEFAULT_PRIME = 208351617316091241234326746312124448251235562226470491514186331217050270460481
DEFAULT_INPUT_FILE = "input.json"


class SetupError(ValueError):
    def __init__(self, message):
        self.message = f"Invalid field setup. {message}"
        super().__init__(self.message)


@dataclass(frozen=True)
class FieldSetup:
    prime: int = DEFAULT_PRIME
    """The modulus of the field all shares live in."""
    check_prime: bool = False
    """Run a primality test on `prime` before handing out the field."""
    label: Optional[str] = None
    """Optional human-readable name for reports."""

    def generate_field(self) -> FieldArithmetic:
        prime = self.prime
        if not isinstance(prime, int) or prime < 2:
            raise SetupError("Prime must be an integer >= 2, got {!r}.".format(prime))
        if self.check_prime and not isprime(prime):
            raise SetupError("{} is not prime.".format(prime))
        return FieldArithmetic(prime)

    def describe(self) -> str:
        name = self.label or "GF(p)"
        return f"{name}, p = {self.prime} ({self.prime.bit_length()} bits)"
