import pytest
import torch

from qtzcodec import InvalidTopology, StripTopology


def test_anchors_are_first_three_of_each_strip():
    topology = StripTopology.from_strips([[0, 1, 2, 3], [2, 3, 4, 5]])
    assert topology.anchors() == frozenset({0, 1, 2, 3})


def test_anchor_set_is_deduplicated():
    topology = StripTopology.from_strips([[0, 1, 2, 3], [0, 1, 2, 4], [2, 1, 0, 5]])
    assert topology.anchors() == frozenset({0, 1, 2})


def test_anchor_mask():
    topology = StripTopology.from_strips([[4, 1, 2, 0, 3]])
    assert topology.anchor_mask(6).tolist() == [False, True, True, False, True, False]


def test_strip_of_exactly_three_is_all_anchors():
    topology = StripTopology.from_strips([[0, 1, 2]])
    assert topology.anchors() == frozenset({0, 1, 2})


@pytest.mark.parametrize("strips", [[[0, 1]], [[0, 1, 2, 3], [4]], [[]]])
def test_short_strip_is_rejected(strips):
    with pytest.raises(InvalidTopology):
        StripTopology.from_strips(strips)


def test_negative_index_is_rejected():
    with pytest.raises(InvalidTopology):
        StripTopology.from_strips([[0, -1, 2]])


def test_out_of_bounds_index_is_rejected():
    topology = StripTopology.from_strips([[0, 1, 9]])
    topology.validate(10)
    with pytest.raises(InvalidTopology):
        topology.validate(9)
    with pytest.raises(InvalidTopology):
        topology.anchor_mask(5)


@pytest.mark.parametrize("offsets", [[1, 3], [0, 2], []])
def test_malformed_offsets_are_rejected(offsets):
    with pytest.raises(InvalidTopology):
        StripTopology(indices=torch.tensor([0, 1, 2]), offsets=torch.tensor(offsets, dtype=torch.int64))


def test_flat_representation():
    topology = StripTopology.from_strips([[0, 1, 2, 3], [5, 6, 7]])
    assert topology.indices.tolist() == [0, 1, 2, 3, 5, 6, 7]
    assert topology.offsets.tolist() == [0, 4, 7]
    assert list(topology.strips()) == [[0, 1, 2, 3], [5, 6, 7]]
    assert len(topology) == 2
    assert topology.max_index() == 7
    assert topology == StripTopology(topology.indices, topology.offsets)


def test_empty_topology_is_falsy():
    topology = StripTopology.from_strips([])
    assert not topology
    assert len(topology) == 0
    assert topology.anchors() == frozenset()
    assert topology.max_index() == -1


def test_coerce():
    topology = StripTopology.from_strips([[0, 1, 2]])
    assert StripTopology.coerce(topology) is topology
    assert StripTopology.coerce(None) is None
    assert StripTopology.coerce([(0, 1, 2)]) == topology
