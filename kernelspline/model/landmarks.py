r'''
Storage of corresponding source and target landmarks
'''
import numpy

from .errors import SizeMismatchError

__all__ = ['LandmarkSet']


def as_point_array(points, dimension):
    points = numpy.array(points, dtype=float)
    if points.size == 0:
        points = points.reshape(0, dimension)
    if points.ndim != 2 or points.shape[1] != dimension:
        raise SizeMismatchError(
            "Landmarks must have shape (n_points, %d), got %s" % (dimension, points.shape)
        )
    points.flags.writeable = False
    return points


class LandmarkSet(object):
    r"""
    Ordered pairs of corresponding points :math:`(p_i, q_i)`, :math:`i=1\ldots N`
    where :math:`p_i \in \Re^D` is a source landmark and :math:`q_i \in \Re^D`
    its target.

    Both sequences are copied in and replaced as a whole; once both are
    populated they always have the same number of points. A setter that
    would break this raises :class:`SizeMismatchError` and leaves the stored
    landmarks untouched.

    Attributes
    ----------
    `source` : array-like, shape (n_landmarks, n_dimensions)
        Read-only source landmarks :math:`p`.

    `target` : array-like, shape (n_landmarks, n_dimensions)
        Read-only target landmarks :math:`q`.

    `displacements` : array-like, shape (n_landmarks, n_dimensions)
        :math:`d_i = q_i - p_i`, refreshed by :meth:`compute_displacements`.
    """
    def __init__(self, dimension):
        self.dimension = int(dimension)
        self._source = as_point_array([], self.dimension)
        self._target = as_point_array([], self.dimension)
        self._displacements = None

    @property
    def source(self):
        return self._source

    @property
    def target(self):
        return self._target

    @property
    def number_of_landmarks(self):
        return len(self._source)

    @property
    def is_complete(self):
        return len(self._source) == len(self._target)

    def _check_count(self, points, other, name):
        if len(other) > 0 and len(points) != len(other):
            raise SizeMismatchError(
                "%d %s landmarks given but %d are stored on the other side" % (
                    len(points), name, len(other)
                )
            )

    def set_source(self, points):
        points = as_point_array(points, self.dimension)
        self._check_count(points, self._target, 'source')
        self._source = points
        self._displacements = None

    def set_target(self, points):
        points = as_point_array(points, self.dimension)
        self._check_count(points, self._source, 'target')
        self._target = points
        self._displacements = None

    def set_pair(self, source, target):
        source = as_point_array(source, self.dimension)
        target = as_point_array(target, self.dimension)
        if len(source) != len(target):
            raise SizeMismatchError(
                "%d source landmarks and %d target landmarks" % (len(source), len(target))
            )
        self._source = source
        self._target = target
        self._displacements = None

    def compute_displacements(self):
        if not self.is_complete:
            raise SizeMismatchError(
                "Displacements need as many target landmarks (%d) as source landmarks (%d)" % (
                    len(self._target), len(self._source)
                )
            )
        displacements = self._target - self._source
        displacements.flags.writeable = False
        self._displacements = displacements
        return displacements

    @property
    def displacements(self):
        if self._displacements is None:
            return self.compute_displacements()
        return self._displacements
