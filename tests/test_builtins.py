import pytest

from starkstack.builtins import Builtin, parse_builtin, sort_segments


@pytest.mark.parametrize(
    "name, builtin",
    [
        ("program", Builtin.PROGRAM),
        ("range_check", Builtin.RANGE_CHECK),
        ("range_check96", Builtin.RANGE_CHECK96),
        ("mul_mod", Builtin.MUL_MOD),
    ],
)
def test_parse_builtin(name, builtin):
    assert parse_builtin(name) is builtin


def test_parse_round_trip():
    for builtin in Builtin:
        assert parse_builtin(builtin.value) is builtin


def test_unknown_builtin():
    with pytest.raises(ValueError):
        parse_builtin("not_a_builtin")


def test_sort_segments_canonical_order():
    segments = {
        "output": "out",
        "program": "prog",
        "poseidon": "pos",
        "execution": "exec",
        "pedersen": "ped",
    }
    assert sort_segments(segments) == ["prog", "exec", "out", "ped", "pos"]


def test_sort_segments_preserves_all_values():
    segments = {builtin.value: builtin.position for builtin in reversed(list(Builtin))}
    result = sort_segments(segments)
    assert result == sorted(result)
    assert len(result) == len(Builtin)


def test_sort_segments_rejects_unknown():
    with pytest.raises(ValueError):
        sort_segments({"program": 1, "bogus": 2})


def test_sort_empty():
    assert sort_segments({}) == []