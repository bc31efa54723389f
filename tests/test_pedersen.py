import pytest

from starkstack.pedersen import FIELD_PRIME, compute_hash_on_elements, pedersen_hash

SHIFT_POINT_X = 0x49EE3EBA8C1600700EE1B87EB599F16716B0B1022947733551FDE4050CA6804


def test_zero_inputs_give_shift_point():
    assert pedersen_hash(0, 0) == SHIFT_POINT_X


def test_known_vector():
    a = 0x3D937C035C878245CAF64531A5756109C53068DA139362728FEB561405371CB
    b = 0x208A0A10250E382E1E4BBE2880906C2791BF6275695E02FBBC6AEFF9CD8B31A
    expected = 0x30E480BED5FE53FA909CC0F8C4D99B8F9F2C016BE4C41E13A4848797979C662
    assert pedersen_hash(a, b) == expected


def test_result_is_a_field_element_and_deterministic():
    first = pedersen_hash(1, 2)
    assert 0 <= first < FIELD_PRIME
    assert pedersen_hash(1, 2) == first


def test_argument_order_matters():
    forward = pedersen_hash(1, 2)
    backward = pedersen_hash(2, 1)
    assert forward != backward
    assert pedersen_hash(2, 1) == backward


def test_high_bits_contribute():
    high = 1 << 250
    assert pedersen_hash(high, 0) != pedersen_hash(0, 0)
    assert pedersen_hash(high, 0) == pedersen_hash(high, 0)


@pytest.mark.parametrize("a,b", [(FIELD_PRIME, 0), (0, FIELD_PRIME), (-1, 0)])
def test_out_of_range_raises(a, b):
    with pytest.raises(ValueError):
        pedersen_hash(a, b)


def test_hash_on_empty_elements():
    assert compute_hash_on_elements([]) == SHIFT_POINT_X


def test_hash_on_single_element_chains_with_length():
    assert compute_hash_on_elements([5]) == pedersen_hash(pedersen_hash(0, 5), 1)


def test_hash_on_elements_accepts_iterators():
    assert compute_hash_on_elements(iter([3, 4])) == compute_hash_on_elements([3, 4])