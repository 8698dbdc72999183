import numpy as np
import pytest

from numpy.testing import assert_allclose

from DirichletMixtures import (ClusterState, InvariantViolation,
                               MultivariateNormalModel)


X = np.array([[0.0, 0.1], [0.2, -0.1], [5.0, 5.1],
              [5.2, 4.9], [-0.1, 0.0], [4.9, 5.0]])


def _phi(value):
    return (np.array([value, value]), np.eye(2) * (1.0 + abs(value)))


def _assert_reconciled(state):
    assert set(state.phi) == set(state.n)
    for k in state.n:
        assert state.n[k] == len(state.Y[k])


@pytest.fixture
def state():
    state = ClusterState(X)
    state.create_cluster(0, _phi(1.0), label=1)
    state.create_cluster(2, _phi(5.0), label=2)
    state.create_cluster(3, _phi(9.0), label=4)
    return state


class TestConstruction:

    def test_empty(self):
        state = ClusterState(X)
        assert state.n_clusters == 0
        assert state.phi == {} and state.Y == {} and state.n == {}

    def test_data_is_read_only_copy(self):
        data = X.copy()
        state = ClusterState(data)
        data[0, 0] = 100.0
        assert state.data[0, 0] == 0.0
        with pytest.raises(ValueError):
            state.data[0, 0] = 1.0

    def test_read_only_view_is_copied(self):
        base = X.copy()
        view = base.view()
        view.setflags(write=False)
        state = ClusterState(view)
        base[0, 0] = 100.0
        assert state.data[0, 0] == 0.0

    def test_read_only_array_is_shared(self):
        data = X.copy()
        data.setflags(write=False)
        assert ClusterState(data).data is data

    def test_read_only_array_is_validated(self):
        data = np.array([[0.0, np.nan], [1.0, 2.0]])
        data.setflags(write=False)
        with pytest.raises(ValueError):
            ClusterState(data)

    def test_read_only_integer_array_is_converted(self):
        data = np.arange(6).reshape(3, 2)
        data.setflags(write=False)
        state = ClusterState(data)
        assert state.data.dtype == np.float64
        assert not state.data.flags.writeable

    def test_univariate_data(self):
        state = ClusterState([0.5, 1.5, 2.5])
        assert state.data.shape == (3,)
        assert state.get_data([0, 2]).tolist() == [0.5, 2.5]

    def test_from_state_keeps_parameters_and_sizes(self, state):
        state.add_to_cluster(1, 1)
        new = ClusterState.from_state(state)
        assert new.data is state.data
        assert new.n == state.n
        assert set(new.phi) == set(state.phi)
        assert new.Y == {}

    def test_from_state_does_not_alias(self, state):
        new = ClusterState.from_state(state)
        new.create_cluster(5, _phi(2.0))
        assert 3 not in state.n
        assert 3 not in state.phi

    def test_from_state_label_search(self, state):
        new = ClusterState.from_state(state)
        assert new.create_cluster(5, _phi(2.0)) == 3
        assert new.create_cluster(4, _phi(3.0)) == 5

    def test_from_model(self):
        model = MultivariateNormalModel()
        state = ClusterState.from_model(X, model, random_state=0)
        assert state.n_clusters == len(X)
        assert sorted(state.n) == list(range(1, len(X) + 1))
        for j in range(len(X)):
            assert state.Y[j + 1] == [j]
            assert state.n[j + 1] == 1
            mean, precision = state.phi[j + 1]
            assert mean.shape == (2,)
            assert precision.shape == (2, 2)
        _assert_reconciled(state)

    def test_from_model_reproducible(self):
        model = MultivariateNormalModel()
        first = ClusterState.from_model(X, model, random_state=7)
        second = ClusterState.from_model(X, model, random_state=7)
        for k in first.phi:
            assert_allclose(first.phi[k][0], second.phi[k][0])
            assert_allclose(first.phi[k][1], second.phi[k][1])

    def test_from_model_univariate(self):
        model = MultivariateNormalModel(n_features=1)
        state = ClusterState.from_model([0.1, 3.0, -2.0], model,
                                        random_state=0)
        assert state.n_clusters == 3
        assert state.phi[1][1].shape == (1, 1)

    def test_mismatched_labels(self):
        with pytest.raises(InvariantViolation):
            ClusterState(X, phi={1: _phi(1.0)}, n={2: 1})


class TestCreateCluster:

    def test_smallest_free_label(self, state):
        assert sorted(state.n) == [1, 2, 4]
        assert state.create_cluster(5, _phi(3.0)) == 3
        assert state.create_cluster(1, _phi(4.0)) == 5
        _assert_reconciled(state)

    def test_first_label_is_one(self):
        state = ClusterState(X)
        assert state.create_cluster(0, _phi(1.0)) == 1
        assert state.create_cluster(1, _phi(2.0)) == 2

    def test_new_cluster_is_singleton(self, state):
        label = state.create_cluster(5, _phi(3.0))
        assert state.Y[label] == [5]
        assert state.n[label] == 1
        assert_allclose(state.phi[label][0], [3.0, 3.0])

    def test_explicit_label(self, state):
        assert state.create_cluster(5, _phi(3.0), label=10) == 10
        assert sorted(state.n) == [1, 2, 4, 10]
        # labels skipped over remain available
        assert state.create_cluster(1, _phi(4.0)) == 3
        assert state.create_cluster(4, _phi(6.0)) == 5

    def test_large_explicit_label(self):
        state = ClusterState(X)
        assert state.create_cluster(0, _phi(1.0), label=2_000_000) == 2_000_000
        assert state.create_cluster(1, _phi(2.0)) == 1
        assert state.create_cluster(2, _phi(3.0)) == 2
        assert sorted(state.n) == [1, 2, 2_000_000]
        # the state holds nothing beyond the cluster catalog
        assert set(vars(state)) == {'data', 'phi', 'Y', 'n'}

    def test_from_state_with_large_label(self):
        state = ClusterState(X)
        state.create_cluster(0, _phi(1.0), label=2_000_000)
        new = ClusterState.from_state(state)
        assert new.create_cluster(1, _phi(2.0)) == 1
        assert set(vars(new)) == {'data', 'phi', 'Y', 'n'}


class TestAddToCluster:

    def test_increments_size(self, state):
        state.add_to_cluster(1, 1)
        state.add_to_cluster(4, 1)
        assert state.n[1] == 3
        assert state.Y[1] == [0, 1, 4]
        _assert_reconciled(state)

    def test_unknown_label(self, state):
        with pytest.raises(InvariantViolation):
            state.add_to_cluster(1, 3)

    def test_recreates_member_list(self, state):
        new = ClusterState.from_state(state)
        new.add_to_cluster(0, 1)
        assert new.Y[1] == [0]
        assert new.n[1] == 2


class TestAddPoint:

    def test_merges_with_equal_parameters(self, state):
        mean, precision = _phi(5.0)
        label = state.add_point(5, (mean * (1 + 1e-9), precision.copy()))
        assert label == 2
        assert state.n_clusters == 3
        assert state.Y[2] == [2, 5]
        _assert_reconciled(state)

    def test_creates_cluster_with_different_parameters(self, state):
        mean, precision = _phi(5.0)
        label = state.add_point(5, (mean * (1 + 1e-3), precision))
        assert label == 3
        assert state.n_clusters == 4
        _assert_reconciled(state)

    def test_rebuilds_partition(self):
        phis = [_phi(1.0), _phi(1.0), _phi(5.0), _phi(5.0), _phi(1.0),
                _phi(7.0)]
        state = ClusterState(X)
        labels = [state.add_point(j, phi) for j, phi in enumerate(phis)]
        assert labels == [1, 1, 2, 2, 1, 3]
        assert state.n == {1: 3, 2: 2, 3: 1}
        _assert_reconciled(state)

    def test_ignores_purged_clusters(self, state):
        state.remove_from_cluster(2, 2)
        state.cleanup()
        label = state.add_point(5, _phi(5.0))
        assert label == 2
        assert state.Y[2] == [5]


class TestRemoveAndCleanup:

    def test_remove_from_cluster(self, state):
        state.add_to_cluster(1, 1)
        state.remove_from_cluster(0, 1)
        assert state.n[1] == 1
        assert state.Y[1] == [1]

    def test_remove_unknown_label(self, state):
        with pytest.raises(InvariantViolation):
            state.remove_from_cluster(0, 3)

    def test_remove_from_empty_cluster(self, state):
        state.remove_from_cluster(0, 1)
        with pytest.raises(InvariantViolation):
            state.remove_from_cluster(0, 1)

    def test_empty_cluster_kept_until_cleanup(self, state):
        state.remove_from_cluster(2, 2)
        assert 2 in state.n and 2 in state.phi
        assert state.n[2] == 0

    def test_cleanup(self, state):
        state.remove_from_cluster(2, 2)
        state.remove_from_cluster(3, 4)
        assert state.cleanup() == [2, 4]
        assert sorted(state.n) == [1]
        assert sorted(state.phi) == [1]
        assert all(v > 0 for v in state.n.values())
        _assert_reconciled(state)

    def test_cleanup_idempotent(self, state):
        state.remove_from_cluster(2, 2)
        state.cleanup()
        n, phi = dict(state.n), dict(state.phi)
        assert state.cleanup() == []
        assert state.n == n
        assert state.phi.keys() == phi.keys()

    def test_labels_reused_after_cleanup(self, state):
        state.remove_from_cluster(0, 1)
        # not purged yet
        assert state.create_cluster(0, _phi(2.0)) == 3
        state.cleanup()
        assert state.create_cluster(1, _phi(2.0)) == 1
        assert state.create_cluster(4, _phi(2.0)) == 5

    def test_repeated_drain_and_cleanup(self):
        state = ClusterState(X)
        for _ in range(1000):
            state.create_cluster(0, _phi(1.0), label=1)
            state.remove_from_cluster(0, 1)
            assert state.cleanup() == [1]
        assert state.n == {} and state.phi == {} and state.Y == {}
        assert set(vars(state)) == {'data', 'phi', 'Y', 'n'}
        assert state.create_cluster(0, _phi(1.0)) == 1

    def test_member_lists_lag_until_cleanup(self, state):
        # Y is allowed to fall behind n while a sampler drains clusters
        state.n[2] -= 1
        assert state.Y[2] == [2]
        state.cleanup()
        assert 2 not in state.Y
        _assert_reconciled(state)
