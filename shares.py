import json
import logging
from dataclasses import dataclass, field
from typing import List

from shamir import Share

logger = logging.getLogger(__name__)


class ShareFileError(ValueError):
    def __init__(self, message):
        self.message = f"Could not load shares. {message}"
        super().__init__(self.message)


def decode_value(value: str, base) -> int:
    """Convert a numeral string in the given base (2-36) to an integer."""
    try:
        base = int(base)
    except (TypeError, ValueError):
        raise ShareFileError(f"Base {base!r} is not an integer.") from None
    if not 2 <= base <= 36:
        raise ShareFileError(f"Base must be between 2 and 36, got {base}.")
    if not isinstance(value, str) or not value.strip():
        raise ShareFileError(f"Value {value!r} is not a numeral string.")
    try:
        return int(value.strip(), base)
    except ValueError:
        raise ShareFileError(f"{value!r} is not a valid base {base} number.") from None


@dataclass
class ShareCollection:
    total_shares: int
    """n, the number of shares the secret was split into."""
    threshold: int
    """k, the minimum number of shares needed."""
    shares: List[Share] = field(default_factory=list)

    def first(self, count=None) -> List[Share]:
        count = self.threshold if count is None else count
        if count < 1:
            raise ShareFileError(f"Share count must be at least 1, got {count}.")
        if count > len(self.shares):
            raise ShareFileError(f"Need {count} shares, only {len(self.shares)} available.")
        return self.shares[:count]


def parse_shares(data: dict) -> ShareCollection:
    if not isinstance(data, dict) or "keys" not in data:
        raise ShareFileError("Missing 'keys' section with n and k.")
    keys = data["keys"]
    try:
        n, k = int(keys["n"]), int(keys["k"])
    except (KeyError, TypeError, ValueError):
        raise ShareFileError("'keys' must hold integer 'n' and 'k'.") from None
    if k < 1 or k > n:
        raise ShareFileError(f"Threshold k={k} must be between 1 and n={n}.")

    shares = []
    for key, record in data.items():
        if key == "keys":
            continue
        try:
            x = int(key)
        except ValueError:
            raise ShareFileError(f"Share key {key!r} is not an integer x coordinate.") from None
        if not isinstance(record, dict) or "base" not in record or "value" not in record:
            raise ShareFileError(f"Share {key} must have 'base' and 'value'.")
        y = decode_value(record["value"], record["base"])
        logger.debug("share %s: base %s value %r = %d", key, record["base"], record["value"], y)
        shares.append(Share(x, y))

    if len(shares) < k:
        raise ShareFileError(f"File declares k={k} but only holds {len(shares)} shares.")
    if len(shares) != n:
        logger.warning("file declares n=%d but holds %d shares", n, len(shares))
    return ShareCollection(n, k, shares)


def load_share_file(path) -> ShareCollection:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ShareFileError(f"Cannot read {path}: {e.strerror}.") from e
    except json.JSONDecodeError as e:
        raise ShareFileError(f"{path} is not valid JSON: {e.msg}.") from e
    except UnicodeDecodeError as e:
        raise ShareFileError(f"{path} is not UTF-8 text: {e.reason}.") from e
    collection = parse_shares(data)
    logger.info("loaded %d shares from %s (n=%d, k=%d)", len(collection.shares), path,
                collection.total_shares, collection.threshold)
    return collection


def dump_shares(shares: List[Share], threshold: int, base: int = 10) -> dict:
    """Inverse of parse_shares, used by the split command."""
    data = {"keys": {"n": len(shares), "k": threshold}}
    for share in shares:
        data[str(share.x)] = {"base": str(base), "value": encode_value(share.y, base)}
    return data


DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def encode_value(value: int, base: int) -> str:
    if value < 0:
        raise ShareFileError(f"Cannot encode negative value {value}.")
    if not 2 <= base <= 36:
        raise ShareFileError(f"Base must be between 2 and 36, got {base}.")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, r = divmod(value, base)
        digits.append(DIGITS[r])
    return "".join(reversed(digits))
