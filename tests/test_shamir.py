import itertools

import pytest

from config import DEFAULT_PRIME
from field import FieldArithmetic, NonInvertibleError
from shamir import (
    InvalidShareError,
    SecretReconstructor,
    SecretSplitter,
    Share,
    consensus_secret,
    cross_validate,
    eval_poly,
    generate_shares,
    reconstruct_secret,
    verify_reconstruction,
)

# f(x) = 3 + 2x over GF(11)
SMALL_SHARES = [(1, 5), (2, 7), (3, 9)]


@pytest.mark.parametrize("subset", list(itertools.combinations(SMALL_SHARES, 2)))
def test_small_field_scenario(subset):
    assert reconstruct_secret(11, subset) == 3


def test_more_points_than_threshold():
    assert reconstruct_secret(11, SMALL_SHARES) == 3


def test_single_share_returns_y():
    assert reconstruct_secret(11, [(4, 8)]) == 8
    assert reconstruct_secret(DEFAULT_PRIME, [(7, 123456789)]) == 123456789


def test_insufficient_subsets_disagree():
    assert reconstruct_secret(11, [(1, 5)]) != reconstruct_secret(11, [(2, 7)])


def test_duplicate_x_raises():
    with pytest.raises(NonInvertibleError):
        reconstruct_secret(11, [(1, 5), (1, 5), (2, 7)])


def test_duplicate_x_modulo_prime_raises():
    with pytest.raises(NonInvertibleError):
        reconstruct_secret(11, [(1, 5), (12, 7)])


def test_empty_share_set_rejected():
    with pytest.raises(InvalidShareError):
        reconstruct_secret(11, [])


@pytest.mark.parametrize("x", [0, 11, -22])
def test_zero_coordinate_rejected(x):
    with pytest.raises(InvalidShareError):
        reconstruct_secret(11, [(x, 3), (1, 5)])


@pytest.mark.parametrize("bad", [(1,), (1, 2, 3), ("1", 5), (1, 5.0), (True, 5), (3, False), 7])
def test_malformed_share_rejected(bad):
    with pytest.raises(InvalidShareError):
        reconstruct_secret(11, [bad, (2, 7)])


def test_order_independence():
    secret = 987654321987654321
    shares = generate_shares(secret, 4, 6, DEFAULT_PRIME)[:4]
    results = {reconstruct_secret(DEFAULT_PRIME, perm) for perm in itertools.permutations(shares)}
    assert results == {secret}


def test_any_threshold_subset_recovers_secret():
    secret = 2 ** 200 + 12345
    shares = generate_shares(secret, 3, 5, DEFAULT_PRIME)
    for subset in itertools.combinations(shares, 3):
        assert reconstruct_secret(DEFAULT_PRIME, subset) == secret
    assert reconstruct_secret(DEFAULT_PRIME, shares) == secret


def test_inputs_are_not_mutated():
    shares = [Share(1, 5), Share(2, 7)]
    copy = list(shares)
    SecretReconstructor(FieldArithmetic(11)).reconstruct(shares)
    assert shares == copy


def test_unreduced_inputs_land_in_field():
    # same points as SMALL_SHARES shifted by multiples of p
    assert reconstruct_secret(11, [(12, 16), (2 - 11, 7 + 22)]) == 3


def test_lagrange_coefficients_sum_to_one():
    reconstructor = SecretReconstructor(FieldArithmetic(11))
    xs = [1, 2, 3]
    coeffs = [reconstructor.lagrange_coefficient(xs, i) for i in range(len(xs))]
    assert all(0 <= c < 11 for c in coeffs)
    assert sum(coeffs) % 11 == 1


def test_eval_poly():
    assert eval_poly([3, 2], 3, 11) == 9
    assert eval_poly([1, 0, 1], 5, 11) == 4


def test_splitter_with_fixed_coefficients():
    splitter = SecretSplitter(FieldArithmetic(11), 2, 3)
    assert splitter.split(3, coefficients=[2]) == [Share(1, 5), Share(2, 7), Share(3, 9)]


def test_splitter_bytes_secret():
    splitter = SecretSplitter(FieldArithmetic(DEFAULT_PRIME), 2, 3)
    shares = splitter.split(b"hello")
    assert reconstruct_secret(DEFAULT_PRIME, shares[1:]) == int.from_bytes(b"hello", "big")


def test_splitter_random_coefficients_in_range():
    splitter = SecretSplitter(FieldArithmetic(11), 4, 5)
    for _ in range(20):
        coeffs = splitter.random_coefficients()
        assert len(coeffs) == 3
        assert all(1 <= c < 11 for c in coeffs)


@pytest.mark.parametrize("t, n", [(0, 3), (4, 3), (2, 11)])
def test_splitter_rejects_bad_parameters(t, n):
    with pytest.raises(InvalidShareError):
        SecretSplitter(FieldArithmetic(11), t, n)


def test_splitter_rejects_secret_outside_field():
    splitter = SecretSplitter(FieldArithmetic(11), 2, 3)
    with pytest.raises(InvalidShareError):
        splitter.split(11)
    with pytest.raises(InvalidShareError):
        splitter.split(3, coefficients=[1, 2])


def test_cross_validate_all_agree():
    results = cross_validate(SMALL_SHARES, 2, 11)
    assert list(results) == [3]
    assert len(results[3]) == 3


def test_consensus_finds_bad_share():
    shares = generate_shares(42, 2, 5, DEFAULT_PRIME)
    tampered = list(shares)
    tampered[3] = Share(tampered[3].x, tampered[3].y + 1)
    secret, suspicious = consensus_secret(tampered, 2, DEFAULT_PRIME)
    assert secret == 42
    assert suspicious == [tampered[3]]


def test_cross_validate_rejects_bad_threshold():
    with pytest.raises(InvalidShareError):
        cross_validate(SMALL_SHARES, 4, 11)


def test_verify_reconstruction():
    assert verify_reconstruction(3, 3)
    assert not verify_reconstruction(3, 4)


def test_secret_near_default_prime():
    secret = DEFAULT_PRIME - 12345
    shares = generate_shares(secret, 3, 5, DEFAULT_PRIME)
    assert reconstruct_secret(DEFAULT_PRIME, shares[:3]) == secret
    assert reconstruct_secret(DEFAULT_PRIME, shares[2:]) == secret
