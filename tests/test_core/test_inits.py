"""
Тесты стратегий инициализации.
"""

import numpy as np
import pytest

from lanekmeans import KMeans, KMeansPlusPlus, RandomPartition, RandomSample
from lanekmeans.core.base import get_init
from lanekmeans.core.errors import KMeansConfigurationError


def _init(kmeans, strategy, k, seed=0):
    state = kmeans.new_state(k, max_iter=1)
    strategy(kmeans, state, np.random.default_rng(seed))
    return state


def _row_indices(rows, X):
    """Индексы строк X, совпадающих с каждой строкой rows (или -1)."""
    out = []
    for r in rows:
        hits = np.flatnonzero(np.all(X == r, axis=1))
        out.append(int(hits[0]) if hits.size else -1)
    return out


class TestRandomPartition:
    def test_frequencies_match_assignments(self, uniform_samples):
        X, N, D = uniform_samples
        state = _init(KMeans(X, N, D), RandomPartition(), k=4)

        assert state.centroid_frequency.sum() == N
        np.testing.assert_array_equal(
            state.centroid_frequency, np.bincount(state.assignments, minlength=4)
        )

    def test_centroids_are_cluster_means(self, uniform_samples):
        X, N, D = uniform_samples
        km = KMeans(X, N, D, lanes=4)
        state = _init(km, RandomPartition(), k=3)

        rows = X.reshape(N, D)
        for c in range(3):
            expected = rows[state.assignments == c].mean(axis=0)
            np.testing.assert_allclose(state.centroids.bfr[c, :D], expected, rtol=1e-10)
        assert np.all(state.centroids.bfr[:, D:] == 0)

    def test_single_cluster_is_global_mean(self, uniform_samples):
        X, N, D = uniform_samples
        state = _init(KMeans(X, N, D), RandomPartition(), k=1)
        np.testing.assert_allclose(
            state.centroids.bfr[0, :D], X.reshape(N, D).mean(axis=0), rtol=1e-10
        )

    def test_empty_cluster_left_at_zero(self, simple_2d_dataset):
        X, N, D = simple_2d_dataset
        km = KMeans(X, N, D)
        # k = N: почти наверняка какой-то кластер пуст; проверяем при любом seed
        for seed in range(5):
            state = _init(km, RandomPartition(), k=N, seed=seed)
            for c in state.empty_clusters():
                assert np.all(state.centroids.bfr[c] == 0)


class TestRandomSample:
    def test_centroids_are_original_rows(self, uniform_samples):
        X, N, D = uniform_samples
        state = _init(KMeans(X, 100, 3, n_blocks=1), RandomSample(), k=5)

        idx = _row_indices(state.centroids.bfr[:, :D], X.reshape(N, D))
        assert -1 not in idx
        assert len(set(idx)) == 5

    @pytest.mark.parametrize("n_blocks, k", [(3, 5), (4, 10), (7, 7), (4, 9)])
    def test_all_slots_filled_across_blocks(self, uniform_samples, n_blocks, k):
        X, N, D = uniform_samples
        state = _init(KMeans(X, N, D, n_blocks=n_blocks), RandomSample(), k=k)

        idx = _row_indices(state.centroids.bfr[:, :D], X.reshape(N, D))
        assert -1 not in idx
        assert len(set(idx)) == k

    def test_k_equals_n_uses_every_row(self, simple_2d_dataset):
        X, N, D = simple_2d_dataset
        state = _init(KMeans(X, N, D, n_blocks=2), RandomSample(), k=N)

        idx = _row_indices(state.centroids.bfr[:, :D], X.reshape(N, D))
        assert sorted(idx) == list(range(N))


class TestKMeansPlusPlus:
    def test_picks_distinct_rows(self, tight_blobs):
        X, N, D = tight_blobs
        state = _init(KMeans(X, N, D), KMeansPlusPlus(), k=3, seed=11)

        idx = _row_indices(state.centroids.bfr[:, :D], X.reshape(N, D))
        assert -1 not in idx
        # На хорошо разделённых кластерах центры попадают в разные кластеры
        assert len({i // 40 for i in idx}) == 3

    def test_deterministic_under_seed(self, blobs_3):
        X, N, D = blobs_3
        km = KMeans(X, N, D)
        a = _init(km, KMeansPlusPlus(), k=3, seed=5)
        b = _init(km, KMeansPlusPlus(), k=3, seed=5)
        np.testing.assert_array_equal(a.centroids.bfr, b.centroids.bfr)

    def test_independent_of_block_count(self, blobs_3):
        X, N, D = blobs_3
        a = _init(KMeans(X, N, D, n_blocks=1), KMeansPlusPlus(), k=3, seed=5)
        b = _init(KMeans(X, N, D, n_blocks=4), KMeansPlusPlus(), k=3, seed=5)
        np.testing.assert_array_equal(a.centroids.bfr, b.centroids.bfr)

    def test_duplicate_samples(self):
        X = np.ones(10 * 2)
        state = _init(KMeans(X, 10, 2), KMeansPlusPlus(), k=3)
        assert np.all(state.centroids.bfr[:, :2] == 1.0)
        assert state.centroid_frequency.sum() == 10


class TestInitLookup:
    def test_names(self):
        assert isinstance(get_init("kmeans++"), KMeansPlusPlus)
        assert isinstance(get_init("random_sample"), RandomSample)
        assert isinstance(get_init("random_partition"), RandomPartition)

    def test_callable_passthrough(self):
        def custom(kmeans, state, rng):
            pass

        assert get_init(custom) is custom

    def test_unknown(self):
        with pytest.raises(KMeansConfigurationError):
            get_init("forgy")
