"""Tests for the weighted k-centre engine."""

import numpy as np
import pytest

from colour_smash.codec import get_format, pixels_to_components
from colour_smash.combination import combination_distance
from colour_smash.grouping import group, group_pixels
from colour_smash.kmeans import (
    assign_exhaustive,
    assign_pruned,
    initialize_centres,
    quantize_groups,
    reposition_centres,
    run_kmeans,
)

from conftest import random_opaque_colours


def _points(pixels, slots=1):
    arr = np.asarray(pixels, dtype=np.uint8).reshape(-1, slots, 4)
    return pixels_to_components(arr)


class TestSeeding:
    """Test cases for initialize_centres."""

    def test_first_centre_is_most_frequent(self, rgba8):
        """Test that seeding starts at the heaviest group and splits at the farthest."""
        points = _points([(0, 0, 0, 255), (255, 255, 255, 255), (26, 26, 26, 255)])
        counts = np.array([10, 1, 3])
        centres, labels = initialize_centres(points, counts, 2, rgba8)
        np.testing.assert_array_equal(centres[0], points[0])
        np.testing.assert_array_equal(centres[1], points[1])
        assert labels.tolist() == [0, 1, 0]

    def test_fewer_groups_than_k(self, rgb5a3):
        """Test one quantised centre per group when N <= k."""
        points = _points([(0xEC, 0x08, 0x09, 0xEC), (0, 0, 0, 255)])
        centres, labels = initialize_centres(points, np.array([1, 1]), 4, rgb5a3)
        assert centres.shape == (2, 1, 4)
        np.testing.assert_array_equal(centres, rgb5a3.quantise(points))
        assert labels.tolist() == [0, 1]

    def test_duplicate_centre_is_logged(self, rgb5a3, capsys):
        """Test that a repeated centre warns and seeding carries on."""
        # All three quantise to RGB5A3 black, so every normalised distance is 0.
        points = _points([(0, 0, 0, 255), (1, 1, 1, 255), (2, 2, 2, 255)])
        centres, labels = initialize_centres(points, np.array([5, 1, 1]), 2, rgb5a3)
        assert "[warn] created duplicate centre" in capsys.readouterr().out
        np.testing.assert_array_equal(centres[0], centres[1])
        assert labels.tolist() == [0, 0, 0]


class TestAssignment:
    """Test cases for pruned and exhaustive reassignment."""

    @pytest.fixture
    def scene(self, rgba8):
        colours = random_opaque_colours(400, seed=5)
        points = _points(colours)
        rng = np.random.default_rng(5)
        counts = rng.integers(1, 50, size=400)
        centres, labels = initialize_centres(points, counts, 24, rgba8)
        return points, counts, centres, labels

    def test_pruned_is_optimal(self, scene):
        """Test that every group ends at a nearest centre."""
        points, _, centres, labels = scene
        # Jitter the labels so the scan has real work to do.
        prior = (labels + 3) % centres.shape[0]
        result = assign_pruned(points, centres, prior)
        all_d = np.stack([combination_distance(points, c) for c in centres], axis=1)
        chosen = all_d[np.arange(points.shape[0]), result]
        np.testing.assert_array_equal(chosen, all_d.min(axis=1))

    def test_pruned_matches_exhaustive(self, scene):
        """Test identical labels from both scans, ties included."""
        points, _, centres, labels = scene
        prior = (labels * 7 + 1) % centres.shape[0]
        np.testing.assert_array_equal(
            assign_pruned(points, centres, prior),
            assign_exhaustive(points, centres, prior),
        )

    def test_workers_match_single_thread(self, scene):
        """Test that the thread pool gives the same labels."""
        points, _, centres, labels = scene
        prior = (labels + 1) % centres.shape[0]
        np.testing.assert_array_equal(
            assign_pruned(points, centres, prior, workers=4),
            assign_pruned(points, centres, prior, workers=1),
        )

    def test_tie_keeps_prior(self):
        """Test that an equally close centre does not steal a group."""
        points = np.array([[[0.5, 0.0, 0.0, 1.0]]])
        centres = np.array([[[0.25, 0.0, 0.0, 1.0]], [[0.75, 0.0, 0.0, 1.0]]])
        for prior in (0, 1):
            labels = np.array([prior])
            assert assign_pruned(points, centres, labels).tolist() == [prior]
            assert assign_exhaustive(points, centres, labels).tolist() == [prior]


# (colour type, slots, semi-transparent)
PRUNING_CASES = [
    ("RGBA8", 1, True),
    ("RGB5A3", 1, False),
    ("RGB5A3", 1, True),
    ("RGBA8", 2, False),
    ("RGB5A3", 2, True),
]


def _mixed_scene(slots, translucent, seed, size=300):
    rng = np.random.default_rng(seed)
    pixels = rng.integers(0, 256, size=(size, slots, 4), dtype=np.uint8)
    if translucent:
        pixels[..., 3] = rng.integers(1, 256, size=(size, slots), dtype=np.uint8)
    else:
        pixels[..., 3] = 255
    uniques, counts, _ = group_pixels(pixels)
    return pixels_to_components(uniques), counts


class TestPruningAcrossInputs:
    """Pruned and exhaustive scans on partial alpha, RGB5A3 and composites."""

    @pytest.mark.parametrize("colour_type, slots, translucent", PRUNING_CASES)
    @pytest.mark.parametrize("seed", [0, 1, 2])
    def test_single_step(self, colour_type, slots, translucent, seed):
        """Test identical labels from one reassignment with shuffled priors."""
        fmt = get_format(colour_type)
        points, counts = _mixed_scene(slots, translucent, seed)
        centres, labels = initialize_centres(points, counts, 20, fmt)
        prior = (labels * 5 + seed) % centres.shape[0]
        np.testing.assert_array_equal(
            assign_pruned(points, centres, prior),
            assign_exhaustive(points, centres, prior),
        )

    @pytest.mark.parametrize("colour_type, slots, translucent", PRUNING_CASES)
    def test_full_run(self, colour_type, slots, translucent):
        """Test the same fixed point with and without pruning."""
        fmt = get_format(colour_type)
        points, counts = _mixed_scene(slots, translucent, seed=4)
        pruned = run_kmeans(points, counts, 12, fmt, pruning=True)
        full = run_kmeans(points, counts, 12, fmt, pruning=False)
        assert pruned.converged and full.converged
        assert pruned.iterations == full.iterations
        np.testing.assert_array_equal(pruned.labels, full.labels)
        np.testing.assert_array_equal(pruned.centres, full.centres)

    @pytest.mark.parametrize("colour_type, slots, translucent", PRUNING_CASES)
    def test_workers(self, colour_type, slots, translucent):
        """Test that the thread pool agrees on the same inputs."""
        fmt = get_format(colour_type)
        points, counts = _mixed_scene(slots, translucent, seed=6)
        centres, labels = initialize_centres(points, counts, 16, fmt)
        prior = (labels + 1) % centres.shape[0]
        np.testing.assert_array_equal(
            assign_pruned(points, centres, prior, workers=4),
            assign_pruned(points, centres, prior, workers=1),
        )


class TestRefinement:
    """Test cases for run_kmeans."""

    def test_no_clustering_needed(self, rgba8):
        """Test the early exit when groups do not exceed k."""
        points = _points([(1, 2, 3, 255), (4, 5, 6, 128)])
        result = run_kmeans(points, np.array([1, 2]), 256, rgba8)
        assert result.iterations == 0
        assert result.converged
        np.testing.assert_array_equal(result.centres, points)

    def test_invalid_k(self, rgba8):
        """Test that k < 1 raises ValueError."""
        points = _points([(1, 2, 3, 255)])
        with pytest.raises(ValueError, match="colour count must be >= 1"):
            run_kmeans(points, np.array([1]), 0, rgba8)

    def test_pruning_does_not_change_result(self, rgba8):
        """Test same centres, labels and iteration count with and without pruning."""
        points = _points(random_opaque_colours(300, seed=2))
        counts = np.random.default_rng(2).integers(1, 20, size=300)
        pruned = run_kmeans(points, counts, 16, rgba8, pruning=True)
        full = run_kmeans(points, counts, 16, rgba8, pruning=False)
        assert pruned.converged and full.converged
        assert pruned.iterations == full.iterations
        np.testing.assert_array_equal(pruned.labels, full.labels)
        np.testing.assert_array_equal(pruned.centres, full.centres)

    def test_reproducible(self, rgb5a3):
        """Test that repeated runs reach the same fixed point."""
        points = _points(random_opaque_colours(200, seed=9))
        counts = np.ones(200, dtype=np.int64)
        first = run_kmeans(points, counts, 12, rgb5a3)
        second = run_kmeans(points, counts, 12, rgb5a3)
        assert first.iterations == second.iterations
        np.testing.assert_array_equal(first.labels, second.labels)
        np.testing.assert_array_equal(first.centres, second.centres)

    def test_centres_are_representable(self, rgb5a3):
        """Test that every centre is a fixed point of the format's quantisation."""
        points = _points(random_opaque_colours(150, seed=4))
        result = run_kmeans(points, np.ones(150, dtype=np.int64), 10, rgb5a3)
        np.testing.assert_array_equal(result.centres, rgb5a3.quantise(result.centres))

    def test_iteration_cap_warns(self, rgba8, capsys):
        """Test that hitting max_iterations warns and returns the last partition."""
        # Seeds are grey 0 and 255; after one reposition (11 and 206) grey 120
        # moves to the second centre, so one iteration cannot reach a fixed point.
        points = _points(
            [(0, 0, 0, 255), (255, 255, 255, 255), (200, 200, 200, 255), (120, 120, 120, 255)]
        )
        counts = np.array([10, 1, 8, 1])
        capped = run_kmeans(points, counts, 2, rgba8, max_iterations=1)
        assert not capped.converged
        assert capped.iterations == 1
        assert capped.labels.tolist() == [0, 1, 1, 1]
        assert "[warn] no fixed point after 1 iterations" in capsys.readouterr().out

        free = run_kmeans(points, counts, 2, rgba8)
        assert free.converged
        assert free.iterations > 1
        assert "[warn]" not in capsys.readouterr().out

    def test_empty_cluster_keeps_centre(self, rgba8):
        """Test that a centre without members is left in place."""
        points = _points([(0, 0, 0, 255), (10, 10, 10, 255)])
        centres = _points([(0, 0, 0, 255), (200, 200, 200, 255)])
        labels = np.array([0, 0])
        updated, empty = reposition_centres(points, np.array([1, 1]), labels, centres, rgba8)
        assert empty == 1
        np.testing.assert_array_equal(updated[1], centres[1])
        np.testing.assert_array_equal(updated[0], _points([(5, 5, 5, 255)])[0])


class TestQuantizeGroups:
    """Test cases for the grouped-colour entry point."""

    def test_256_colours(self, rgba8):
        """Test a full palette of distinct colours covering every group once."""
        colours = [tuple(int(c) for c in px) for px in random_opaque_colours(320, seed=8)]
        groups = group(colours)
        centres, members = quantize_groups(groups, rgba8, 256)
        assert len(centres) == 256
        assert len(set(centres)) == 256
        assigned = [g for cluster in members for g in cluster]
        assert len(assigned) == len(groups)
        assert sorted(g.data for g in assigned) == sorted(g.data for g in groups)

    def test_composite_centres_are_tuples(self, rgb5a3):
        """Test that composites produce one output per slot."""
        groups = group(
            [
                ((255, 0, 0, 255), (0, 0, 0, 0)),
                ((250, 0, 0, 255), (0, 0, 0, 0)),
                ((0, 0, 255, 255), (255, 255, 255, 255)),
            ]
        )
        centres, members = quantize_groups(groups, rgb5a3, 2)
        assert all(isinstance(c, tuple) and len(c) == 2 for c in centres)
        assert sorted(len(m) for m in members) == [1, 2]
