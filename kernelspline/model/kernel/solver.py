r'''
Solution of the landmark spline system and its cached stages
'''
from collections import namedtuple
from warnings import warn

import numpy
from scipy import linalg

from ..errors import StaleCacheError, RankDeficientSystemWarning

__all__ = ['SplineCoefficients', 'SolverCache', 'pseudo_inverse', 'reorganize_w', 'identity_coefficients']


SplineCoefficients = namedtuple('SplineCoefficients', ('deformation', 'affine', 'translation'))


def pseudo_inverse(matrix, tolerance=1e-12):
    r'''
    Moore-Penrose pseudo-inverse through the singular value decomposition.

    Singular values smaller than `tolerance` times the largest one are
    treated as zero, so duplicated or collinear landmarks produce the
    minimum norm solution instead of failing.
    '''
    try:
        u, s, vh = linalg.svd(matrix, full_matrices=False, lapack_driver='gesdd')
    except linalg.LinAlgError:
        u, s, vh = linalg.svd(matrix, full_matrices=False, lapack_driver='gesvd')

    if len(s) == 0:
        return numpy.zeros(matrix.T.shape)

    keep = s > tolerance * s.max()
    if not keep.all():
        warn(
            'System of size %d has rank %d, using its pseudo-inverse' % (len(s), keep.sum()),
            RankDeficientSystemWarning
        )

    s_inverse = numpy.zeros_like(s)
    s_inverse[keep] = 1. / s[keep]
    return numpy.dot(vh.T * s_inverse, u.T)


def reorganize_w(w, n_landmarks, dimension):
    r'''
    Split the solution of the system into the deformable coefficients
    :math:`c_i`, the affine matrix :math:`A` and the translation :math:`B`
    of

    .. math::
        \phi(x) = A x + B + \sum_i G(x - p_i) c_i

    The system is solved for displacements, so :math:`A` is the identity
    plus the affine part of the solution.
    '''
    d = dimension
    start = n_landmarks * d
    deformation = w[:start].reshape(n_landmarks, d)
    affine = numpy.eye(d) + w[start: start + d * d].reshape(d, d).T
    translation = w[start + d * d: start + d * (d + 1)].copy()
    return SplineCoefficients(deformation.copy(), affine, translation)


def identity_coefficients(n_landmarks, dimension):
    return SplineCoefficients(
        numpy.zeros((n_landmarks, dimension)),
        numpy.eye(dimension),
        numpy.zeros(dimension)
    )


class SolverCache(object):
    r'''
    Derived matrices of a landmark spline and their validity.

    The three stages are computed in order, :math:`L`, then :math:`L^{-1}`,
    then the coefficients :math:`W = L^{-1} Y`. Requesting a stage whose
    predecessor is missing raises :class:`StaleCacheError`. Any change of the
    landmarks, the stiffness or the kernel goes through
    :meth:`invalidate_all`.
    '''
    def __init__(self, tolerance=1e-12):
        self.tolerance = tolerance
        self.invalidate_all()

    def invalidate_all(self):
        self.k_matrix = None
        self.p_matrix = None
        self.l_matrix = None
        self.l_inverse = None
        self.coefficients = None
        self.l_matrix_computed = False
        self.l_inverse_computed = False
        self.w_matrix_computed = False

    @property
    def state(self):
        return (self.l_matrix_computed, self.l_inverse_computed, self.w_matrix_computed)

    def set_l(self, l_matrix, k_matrix=None, p_matrix=None):
        self.l_matrix = l_matrix
        self.k_matrix = k_matrix
        self.p_matrix = p_matrix
        self.l_matrix_computed = True

    def compute_l_inverse(self):
        if not self.l_matrix_computed:
            raise StaleCacheError('The L matrix must be computed before its inverse')
        self.l_inverse = pseudo_inverse(self.l_matrix, self.tolerance)
        self.l_inverse_computed = True
        return self.l_inverse

    def compute_w_matrix(self, y, n_landmarks, dimension):
        if not self.l_inverse_computed:
            raise StaleCacheError('The inverse of L must be computed before W')
        w = numpy.dot(self.l_inverse, y)
        self.coefficients = reorganize_w(w, n_landmarks, dimension)
        self.w_matrix_computed = True
        return self.coefficients

    def set_solution(self, coefficients):
        self.coefficients = coefficients
        self.w_matrix_computed = True
