import argparse
import json
import logging
import sys

from Crypto.Util.number import long_to_bytes

from config import DEFAULT_INPUT_FILE, DEFAULT_PRIME, FieldSetup, SetupError
from field import NonInvertibleError
from shamir import (
    InvalidShareError,
    SecretReconstructor,
    SecretSplitter,
    consensus_secret,
    verify_reconstruction,
)
from shares import ShareFileError, dump_shares, load_share_file

logger = logging.getLogger(__name__)


# === Helper Functions ===
def parse_int(text):
    """Accept decimal or 0x-prefixed hex on the command line."""
    try:
        return int(text, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{text!r} is not an integer") from None


def secret_as_text(secret):
    return long_to_bytes(secret).decode("utf-8", errors="replace")


# === Commands ===
def reconstruct(args):
    setup = FieldSetup(args.prime, args.check_prime)
    field = setup.generate_field()
    collection = load_share_file(args.input)

    print("=== Secret Reconstruction ===")
    print(f"Field: {setup.describe()}")
    print(f"Total shares (n): {collection.total_shares}")
    print(f"Threshold (k): {collection.threshold}")
    print(f"Available shares: {len(collection.shares)}\n")

    print("Loaded shares:")
    for i, share in enumerate(collection.shares, 1):
        print(f"Share {i}: {share}")
    print()

    if args.all_subsets:
        secret, suspicious = consensus_secret(collection.shares, collection.threshold, field.prime)
        if suspicious:
            print("Inconsistent shares: " + ", ".join(str(s) for s in suspicious))
    else:
        selected = collection.first(args.count)
        print(f"Using {len(selected)} shares for reconstruction")
        secret = SecretReconstructor(field).reconstruct(selected)

    print(f"Reconstructed secret: {secret}")
    if args.text:
        print(f"As text: {secret_as_text(secret)}")

    if args.expected is not None:
        valid = verify_reconstruction(field.reduce(args.expected), secret)
        print(f"Expected:     {args.expected}")
        print(f"Validation: {'SUCCESS' if valid else 'FAILED'}")
        return 0 if valid else 1
    return 0


def split(args):
    field = FieldSetup(args.prime, args.check_prime).generate_field()
    secret = args.text.encode("utf-8") if args.text is not None else args.secret
    shares = SecretSplitter(field, args.threshold, args.num_shares).split(secret)
    data = dump_shares(shares, args.threshold, args.base)
    output = json.dumps(data, indent=2)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(output + "\n")
        print(f"Wrote {len(shares)} shares to {args.output}")
    else:
        print(output)
    return 0


def build_parser():
    parser = argparse.ArgumentParser(description="Shamir secret sharing over a prime field")
    parser.add_argument("-p", "--prime", type=parse_int, default=DEFAULT_PRIME,
                        help="Field prime (default: the 257-bit share-file prime)")
    parser.add_argument("--check-prime", action="store_true",
                        help="Verify that the field modulus is prime before use")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    rec = commands.add_parser("reconstruct", help="Recover a secret from a share file")
    rec.add_argument("-i", "--input", default=DEFAULT_INPUT_FILE,
                     help=f"Share file (default: {DEFAULT_INPUT_FILE})")
    rec.add_argument("-c", "--count", type=int, default=None,
                     help="Number of shares to use, taken from the start of the file (default: k)")
    rec.add_argument("-a", "--all-subsets", action="store_true",
                     help="Reconstruct from every k-subset and report inconsistent shares")
    rec.add_argument("-e", "--expected", type=parse_int, default=None,
                     help="Expected secret to validate against")
    rec.add_argument("--text", action="store_true", help="Also print the secret decoded as UTF-8")
    rec.set_defaults(func=reconstruct)

    spl = commands.add_parser("split", help="Split a secret into a share file")
    group = spl.add_mutually_exclusive_group(required=True)
    group.add_argument("-s", "--secret", type=parse_int, help="Integer secret")
    group.add_argument("--text", help="Text secret, encoded as a big-endian integer")
    spl.add_argument("-n", "--num-shares", type=int, default=5, help="Number of shares to generate (default: 5)")
    spl.add_argument("-t", "--threshold", type=int, default=3, help="Threshold for secret reconstruction (default: 3)")
    spl.add_argument("-b", "--base", type=int, default=10, help="Numeral base of the written values (default: 10)")
    spl.add_argument("-o", "--output", default=None, help="Write the share file here instead of stdout")
    spl.set_defaults(func=split)
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except (SetupError, ShareFileError, InvalidShareError, NonInvertibleError) as e:
        logger.debug("command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
