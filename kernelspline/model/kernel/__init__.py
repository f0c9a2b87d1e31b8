r'''
Landmark based kernel spline transforms
'''
import copy

import numpy

from .. import basis
from ..errors import SizeMismatchError, InvalidParameterLengthError
from ..landmarks import LandmarkSet
from . import assembly
from .solver import SolverCache, identity_coefficients
from .kernels import *
from .kernels import __all__ as kernels_all


__all__ = ['KernelTransform'] + kernels_all


class KernelTransform(basis.Model):
    r"""Spline transform interpolating (or approximating) pairs of landmarks

    Given source landmarks :math:`p_i` and target landmarks :math:`q_i`,
    :math:`i = 1\ldots N`, in :math:`\Re^D` the transform is

    .. math::
        \phi(x) = A x + B + \sum_{i \leq N} G(x - p_i) c_i

    where :math:`G` is the kernel of the spline family and the
    coefficients solve the system assembled in
    :mod:`~kernelspline.model.kernel.assembly` for the displacements
    :math:`d_i = q_i - p_i`. With zero stiffness
    :math:`\phi(p_i) = q_i`; a positive stiffness trades the exactness at the
    landmarks for smoothness (Sprengel, Rohr and Stiehl, 1996).

    The parameter vector :math:`\theta` holds the source landmarks, the fixed
    parameter the target landmarks, both flattened landmark by landmark.
    Derivatives with respect to the parameter are taken with respect to the
    displacements :math:`d`, which is what an optimizer moving the targets
    of fixed sources needs and lets them reuse the cached inverse of the
    system matrix. Every landmark influences every point, so all
    :math:`N D` parameter indices are always reported as non-zero.

    Parameters
    ----------
    kernel_function : KernelFunction
        Kernel of the spline family.
    dimension : int
        Dimension :math:`D` of the space.
    stiffness : float
        Regularization :math:`\lambda \geq 0`, negative values are clamped to 0.
    source_landmarks, target_landmarks : array-like, shape (n_landmarks, dimension)
        When only one of them is given the other one defaults to it.
    tolerance : float
        Relative threshold under which singular values of the system are
        dropped by the pseudo-inverse.
    eager : bool
        Recompute the solution at the end of every mutation, so that
        evaluation never writes to the cache and can run from several
        threads. When False the solution is computed on the first evaluation.
    block_size : int
        Maximum number of points evaluated at once.
    """

    has_nonzero_spatial_hessian = True
    has_nonzero_jacobian_of_spatial_hessian = True

    def __init__(
        self, kernel_function, dimension=3, stiffness=0.,
        source_landmarks=None, target_landmarks=None,
        tolerance=1e-12, eager=True, block_size=4096
    ):
        self._initialize(
            kernel_function, dimension, stiffness, source_landmarks, target_landmarks,
            tolerance, eager, block_size
        )

    def _initialize(
        self, kernel_function, dimension, stiffness, source_landmarks, target_landmarks,
        tolerance, eager, block_size
    ):
        self._kernel_function = copy.copy(kernel_function)
        self.dimension = int(dimension)
        self._stiffness = max(float(stiffness), 0.)
        self.eager = eager
        self.block_size = int(block_size)
        self.landmarks = LandmarkSet(self.dimension)
        self.cache = SolverCache(tolerance)

        if source_landmarks is None:
            source_landmarks = target_landmarks
        if target_landmarks is None:
            target_landmarks = source_landmarks

        if source_landmarks is None:
            self.set_identity()
        else:
            self.set_landmarks(source_landmarks, target_landmarks)

    # Cache state

    @property
    def tolerance(self):
        return self.cache.tolerance

    @tolerance.setter
    def tolerance(self, value):
        self.cache.tolerance = value
        self._state_changed()

    @property
    def l_matrix_computed(self):
        return self.cache.l_matrix_computed

    @property
    def l_inverse_computed(self):
        return self.cache.l_inverse_computed

    @property
    def w_matrix_computed(self):
        return self.cache.w_matrix_computed

    def invalidate_all(self):
        self.cache.invalidate_all()

    def _state_changed(self):
        self.invalidate_all()
        if self.eager and self.landmarks.is_complete:
            self.update()

    def _check_complete(self):
        if not self.landmarks.is_complete:
            raise SizeMismatchError(
                "The transform has %d source and %d target landmarks" % (
                    len(self.landmarks.source), len(self.landmarks.target)
                )
            )

    def compute_l(self):
        source = self.landmarks.source
        k = assembly.compute_k(self.kernel_function, source, self._stiffness)
        p = assembly.compute_p(source)
        self.cache.set_l(assembly.compute_l(k, p), k, p)
        return self.cache.l_matrix

    def compute_l_inverse(self):
        return self.cache.compute_l_inverse()

    def compute_w_matrix(self):
        displacements = self.landmarks.compute_displacements()
        return self.cache.compute_w_matrix(
            assembly.compute_y(displacements),
            len(displacements), self.dimension
        )

    def update(self):
        r'''
        Run the stages of the system that are not up to date
        '''
        self._check_complete()
        if self.landmarks.number_of_landmarks == 0:
            if not self.cache.w_matrix_computed:
                self.cache.set_solution(identity_coefficients(0, self.dimension))
            return

        if not self.cache.l_matrix_computed:
            self.compute_l()
        if not self.cache.l_inverse_computed:
            self.compute_l_inverse()
        if not self.cache.w_matrix_computed:
            self.compute_w_matrix()

    def _ensure_solved(self):
        if not self.cache.w_matrix_computed:
            self.update()
        return self.cache.coefficients

    def _ensure_l_inverse(self):
        self._check_complete()
        if self.landmarks.number_of_landmarks == 0:
            return numpy.zeros((self.dimension * (self.dimension + 1), 0))
        if not self.cache.l_matrix_computed:
            self.compute_l()
        if not self.cache.l_inverse_computed:
            self.compute_l_inverse()
        return self.cache.l_inverse

    @property
    def K(self):
        self._ensure_l_inverse()
        return self.cache.k_matrix

    @property
    def l_inverse(self):
        return self._ensure_l_inverse()

    @property
    def coefficients(self):
        return self._ensure_solved()

    # Mutators

    @property
    def kernel_function(self):
        return self._kernel_function

    @kernel_function.setter
    def kernel_function(self, kernel_function):
        self._kernel_function = copy.copy(kernel_function)
        self._state_changed()

    @property
    def stiffness(self):
        return self._stiffness

    @stiffness.setter
    def stiffness(self, stiffness):
        self._stiffness = max(float(stiffness), 0.)
        self._state_changed()

    @property
    def alpha(self):
        return self._kernel_function.alpha

    @alpha.setter
    def alpha(self, alpha):
        self._kernel_function.alpha = alpha
        self._state_changed()

    @property
    def poisson_ratio(self):
        return self._kernel_function.poisson_ratio

    @poisson_ratio.setter
    def poisson_ratio(self, poisson_ratio):
        self._kernel_function.poisson_ratio = poisson_ratio
        self._state_changed()

    @property
    def source_landmarks(self):
        return self.landmarks.source

    @source_landmarks.setter
    def source_landmarks(self, points):
        self.set_source_landmarks(points)

    @property
    def target_landmarks(self):
        return self.landmarks.target

    @target_landmarks.setter
    def target_landmarks(self, points):
        self.set_target_landmarks(points)

    @property
    def displacements(self):
        return self.landmarks.displacements

    def set_source_landmarks(self, points):
        self.landmarks.set_source(points)
        self._state_changed()

    def set_target_landmarks(self, points):
        self.landmarks.set_target(points)
        self._state_changed()

    def set_landmarks(self, source, target):
        self.landmarks.set_pair(source, target)
        self._state_changed()

    def set_identity(self):
        r'''
        Make the transform the identity without solving the system.

        The source landmarks are moved onto the targets, the affine part is
        set to the identity and the deformable coefficients to zero. An eager
        transform still computes :math:`L^{-1}` for the parameter
        derivatives, a lazy one defers it to the first of them.
        '''
        points = self.landmarks.target
        if len(points) == 0:
            points = self.landmarks.source
        self.landmarks.set_pair(points, points)
        self.invalidate_all()
        self.cache.set_solution(identity_coefficients(len(points), self.dimension))
        if self.eager and len(points) > 0:
            self.compute_l()
            self.compute_l_inverse()

    # Parameters

    def _parameter_to_points(self, parameter, counterpart):
        parameter = numpy.asarray(parameter, dtype=float).ravel()
        if len(parameter) % self.dimension != 0:
            raise InvalidParameterLengthError(
                "The parameter length %d is not a multiple of the dimension %d" % (
                    len(parameter), self.dimension
                )
            )
        if len(counterpart) > 0 and len(parameter) != counterpart.size:
            raise InvalidParameterLengthError(
                "The parameter must have %d entries, got %d" % (counterpart.size, len(parameter))
            )
        return parameter.reshape(len(parameter) // self.dimension, self.dimension)

    @property
    def parameter(self):
        return self.landmarks.source.ravel().copy()

    @parameter.setter
    def parameter(self, parameter):
        self.set_source_landmarks(
            self._parameter_to_points(parameter, self.landmarks.target)
        )

    @property
    def fixed_parameter(self):
        return self.landmarks.target.ravel().copy()

    @fixed_parameter.setter
    def fixed_parameter(self, parameter):
        self.set_target_landmarks(
            self._parameter_to_points(parameter, self.landmarks.source)
        )

    @property
    def number_of_parameters(self):
        return self.landmarks.source.size

    @property
    def identity(self):
        if len(self.landmarks.target) > 0:
            return self.landmarks.target.ravel().copy()
        return self.landmarks.source.ravel().copy()

    @property
    def nonzero_jacobian_indices(self):
        return numpy.arange(self.number_of_parameters)

    # Evaluation

    def _as_points(self, points):
        points = numpy.atleast_2d(numpy.asarray(points, dtype=float))
        if points.ndim != 2 or points.shape[1] != self.dimension:
            raise SizeMismatchError(
                "Points must have shape (n_points, %d), got %s" % (self.dimension, points.shape)
            )
        return points

    def _blockwise(self, function, points):
        if len(points) <= self.block_size:
            return function(points)
        return numpy.concatenate([
            function(points[start: start + self.block_size])
            for start in range(0, len(points), self.block_size)
        ])

    def deformation_contribution(self, points):
        r'''
        Non-affine part :math:`\sum_i G(x - p_i) c_i` of the transform
        '''
        points = self._as_points(points)
        deformation = self._ensure_solved().deformation
        source = self.landmarks.source

        def contribution(block):
            g = self.kernel_function.G(block[:, None, :] - source[None, :, :])
            return numpy.einsum('pnab,nb->pa', g, deformation)

        return self._blockwise(contribution, points)

    def transform_points(self, points):
        points = self._as_points(points)
        coefficients = self._ensure_solved()
        return (
            numpy.dot(points, coefficients.affine.T) + coefficients.translation +
            self.deformation_contribution(points)
        )

    def jacobian(self, points):
        r"""Transposed Jacobian with respect to the displacements

        Unlike :attr:`parameter`, which holds the source landmarks, the
        variable here is :math:`\theta = d`, i.e. the target landmarks
        (:attr:`fixed_parameter`) with the sources held fixed. The same holds
        for :meth:`jacobian_parameter_jacobian_position` and
        :meth:`jacobian_parameter_hessian_position`.

        Returns
        -------
        J :  array-like, shape (n_points, n_landmarks * n_dimensions, n_dimensions)
            :math:`J_{ji} = \frac{\partial \phi_i(x)}{\partial d_j}`
        """
        points = self._as_points(points)
        source = self.landmarks.source
        l_inverse = self._ensure_l_inverse()[:, :source.size]

        def jacobian_block(block):
            m = assembly.basis_matrix(self.kernel_function, source, block)
            return numpy.dot(m, l_inverse).swapaxes(-1, -2)

        return self._blockwise(jacobian_block, points)

    def jacobian_and_indices(self, points):
        return self.jacobian(points), self.nonzero_jacobian_indices

    def jacobian_position(self, points):
        points = self._as_points(points)
        coefficients = self._ensure_solved()
        source = self.landmarks.source

        def jacobian_position_block(block):
            kernel_jacobian = self.kernel_function.jacobian(block[:, None, :] - source[None, :, :])
            return (
                numpy.einsum('pnabc,nb->pca', kernel_jacobian, coefficients.deformation) +
                coefficients.affine.T
            )

        return self._blockwise(jacobian_position_block, points)

    def hessian_position(self, points):
        points = self._as_points(points)
        coefficients = self._ensure_solved()
        source = self.landmarks.source

        def hessian_position_block(block):
            kernel_hessian = self.kernel_function.hessian(block[:, None, :] - source[None, :, :])
            return numpy.einsum('pnabce,nb->pcea', kernel_hessian, coefficients.deformation)

        return self._blockwise(hessian_position_block, points)

    def jacobian_parameter_jacobian_position(self, points):
        points = self._as_points(points)
        source = self.landmarks.source
        l_inverse = self._ensure_l_inverse()[:, :source.size]

        def block_derivative(block):
            dm = assembly.basis_matrix_jacobian(self.kernel_function, source, block)
            return numpy.dot(dm, l_inverse).transpose(0, 3, 1, 2)

        return self._blockwise(block_derivative, points)

    def jacobian_parameter_hessian_position(self, points):
        points = self._as_points(points)
        source = self.landmarks.source
        l_inverse = self._ensure_l_inverse()[:, :source.size]

        def block_derivative(block):
            d2m = assembly.basis_matrix_hessian(self.kernel_function, source, block)
            return numpy.dot(d2m, l_inverse).transpose(0, 4, 1, 2, 3)

        return self._blockwise(block_derivative, points)

    def __getstate__(self):
        state = {
            'kernel_function': self.kernel_function,
            'dimension': self.dimension,
            'stiffness': self.stiffness,
            'source_landmarks': numpy.array(self.landmarks.source),
            'target_landmarks': numpy.array(self.landmarks.target),
            'tolerance': self.tolerance,
            'eager': self.eager,
            'block_size': self.block_size
        }
        return state

    def __setstate__(self, state):
        self._initialize(
            state['kernel_function'], state['dimension'], state['stiffness'],
            None, None, state['tolerance'], state['eager'], state['block_size']
        )
        self.landmarks.set_source(state['source_landmarks'])
        self.landmarks.set_target(state['target_landmarks'])
        self._state_changed()

    def __repr__(self):
        return '%s(%r, dimension=%d, stiffness=%g, n_landmarks=%d)' % (
            type(self).__name__, self.kernel_function, self.dimension,
            self.stiffness, self.landmarks.number_of_landmarks
        )
