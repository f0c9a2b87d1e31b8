import numpy
from numpy import testing
import pytest

from kernelspline import model


def test_empty_landmark_set():
    landmarks = model.LandmarkSet(3)

    assert landmarks.number_of_landmarks == 0
    assert landmarks.is_complete
    assert landmarks.source.shape == (0, 3)
    assert landmarks.displacements.shape == (0, 3)


def test_landmarks_are_copied_and_read_only():
    points = numpy.arange(6.).reshape(3, 2)
    landmarks = model.LandmarkSet(2)
    landmarks.set_source(points)
    points[0, 0] = 100.

    assert landmarks.source[0, 0] == 0.
    with pytest.raises(ValueError):
        landmarks.source[0, 0] = 1.


def test_sides_can_be_filled_one_at_a_time():
    landmarks = model.LandmarkSet(2)
    landmarks.set_source([(0, 0), (1, 0), (0, 1)])

    assert not landmarks.is_complete
    with pytest.raises(model.SizeMismatchError):
        landmarks.compute_displacements()

    landmarks.set_target([(0, 0), (2, 0), (0, 1)])
    assert landmarks.is_complete
    testing.assert_array_equal(landmarks.displacements, [(0, 0), (1, 0), (0, 0)])


def test_mismatched_sizes_leave_the_set_untouched():
    landmarks = model.LandmarkSet(2)
    landmarks.set_pair([(0, 0), (1, 0)], [(0, 1), (1, 1)])

    with pytest.raises(model.SizeMismatchError):
        landmarks.set_target([(0, 0)])
    with pytest.raises(model.SizeMismatchError):
        landmarks.set_source([(0, 0), (1, 1), (2, 2)])
    with pytest.raises(model.SizeMismatchError):
        landmarks.set_pair([(0, 0)], [(0, 0), (1, 1)])

    testing.assert_array_equal(landmarks.source, [(0, 0), (1, 0)])
    testing.assert_array_equal(landmarks.target, [(0, 1), (1, 1)])


def test_pair_changes_the_number_of_landmarks():
    landmarks = model.LandmarkSet(2)
    landmarks.set_pair([(0, 0), (1, 0)], [(0, 1), (1, 1)])
    landmarks.set_pair([(0, 0)], [(3, 3)])

    assert landmarks.number_of_landmarks == 1
    testing.assert_array_equal(landmarks.displacements, [(3, 3)])


def test_wrong_dimension_is_rejected():
    landmarks = model.LandmarkSet(3)
    with pytest.raises(model.SizeMismatchError):
        landmarks.set_source([(0, 0), (1, 1)])
    with pytest.raises(model.SizeMismatchError):
        landmarks.set_target(numpy.zeros(3))


def test_displacements_follow_the_landmarks():
    landmarks = model.LandmarkSet(2)
    landmarks.set_pair([(0, 0)], [(1, 1)])
    testing.assert_array_equal(landmarks.displacements, [(1, 1)])

    landmarks.set_target([(2, 0)])
    testing.assert_array_equal(landmarks.displacements, [(2, 0)])
