r'''
Kernel families for landmark splines.

A kernel maps the vector :math:`x` between two points to a
:math:`D\times D` matrix :math:`G(x)`. All the families here are even,
:math:`G(-x) = G(x)`, and return symmetric matrices.
'''
import numpy

__all__ = [
    'NOT_APPLICABLE', 'KernelFunction', 'RadialKernel', 'ElasticKernel',
    'ThinPlateSplineKernel', 'ThinPlateR2LogRSplineKernel', 'VolumeSplineKernel',
    'ElasticBodySplineKernel', 'ElasticBodyReciprocalSplineKernel'
]


NOT_APPLICABLE = -1.

_MINIMUM_RADIUS = 1e-20


def _polar(vectors):
    vectors = numpy.asarray(vectors, dtype=float)
    radius = numpy.sqrt((vectors ** 2).sum(-1))
    safe_radius = numpy.maximum(radius, _MINIMUM_RADIUS)
    unit = vectors / safe_radius[..., None]
    return vectors, radius, safe_radius, unit


def _radial_hessian(derivative, second_derivative, safe_radius, unit):
    r'''
    Hessian of :math:`h(\|x\|)`:

    .. math::
        h''(r) u u^T + \frac{h'(r)}{r} (I - u u^T)
    '''
    eye = numpy.eye(unit.shape[-1])
    uu = unit[..., :, None] * unit[..., None, :]
    return (
        second_derivative[..., None, None] * uu +
        (derivative / safe_radius)[..., None, None] * (eye - uu)
    )


class KernelFunction(object):
    r"""Base class of the kernel of a landmark spline.

    Subclasses provide :math:`G(x)` and its first and second derivatives with
    respect to :math:`x`. The diagonal blocks of the system matrix are given
    by :meth:`reflexive_G`, by default :math:`\lambda I` where :math:`\lambda`
    is the stiffness of the transform (Sprengel, Rohr and Stiehl, 1996).

    The elastic families depend on a Poisson ratio :math:`\nu` and on the
    derived :math:`\alpha`. Every kernel accepts both so callers need not
    know the family: families without an :math:`\alpha` report
    :data:`NOT_APPLICABLE` and ignore assignments to it, and the Poisson ratio
    is simply stored.
    """
    singular_hessian_at_origin = False

    def __init__(self, poisson_ratio=.25):
        self._poisson_ratio = poisson_ratio

    def G(self, vectors):
        r"""Kernel matrices

        Parameters
        ----------
        x :  array-like, shape (..., n_dimensions)
            Vectors between two points

        Returns
        -------
        G :  array-like, shape (..., n_dimensions, n_dimensions)
        """
        raise NotImplementedError()

    def __call__(self, vectors):
        return self.G(vectors)

    def reflexive_G(self, landmark_index, stiffness, dimension):
        return stiffness * numpy.eye(dimension)

    def jacobian(self, vectors):
        r"""First derivatives of the kernel

        Returns
        -------
        J :  array-like, shape (..., n_dimensions, n_dimensions, n_dimensions)
            :math:`J_{abc} = \frac{\partial G_{ab}(x)}{\partial x_c}`
        """
        raise NotImplementedError()

    def hessian(self, vectors):
        r"""Second derivatives of the kernel

        Returns
        -------
        H :  array-like, shape (..., n_dimensions, n_dimensions, n_dimensions, n_dimensions)
            :math:`H_{abce} = \frac{\partial^2 G_{ab}(x)}{\partial x_c \partial x_e}`

        Families whose second derivatives are unbounded at the origin, see
        :attr:`singular_hessian_at_origin`, return ``nan`` for :math:`x = 0`.
        """
        raise NotImplementedError()

    @property
    def alpha(self):
        return NOT_APPLICABLE

    @alpha.setter
    def alpha(self, value):
        pass

    @property
    def poisson_ratio(self):
        return self._poisson_ratio

    @poisson_ratio.setter
    def poisson_ratio(self, value):
        self._poisson_ratio = value

    def _mark_singular_origin(self, hessian, radius):
        if self.singular_hessian_at_origin:
            hessian[radius < _MINIMUM_RADIUS] = numpy.nan
        return hessian

    def __repr__(self):
        return '%s()' % type(self).__name__


class RadialKernel(KernelFunction):
    r"""
    Kernels of the form :math:`G(x) = \phi(\|x\|) I`
    """
    def phi(self, radius, safe_radius):
        raise NotImplementedError()

    def derivative(self, radius, safe_radius):
        raise NotImplementedError()

    def second_derivative(self, radius, safe_radius):
        raise NotImplementedError()

    def G(self, vectors):
        vectors, radius, safe_radius, _ = _polar(vectors)
        eye = numpy.eye(vectors.shape[-1])
        return self.phi(radius, safe_radius)[..., None, None] * eye

    def jacobian(self, vectors):
        vectors, radius, safe_radius, unit = _polar(vectors)
        eye = numpy.eye(vectors.shape[-1])
        gradient = self.derivative(radius, safe_radius)[..., None] * unit
        return eye[:, :, None] * gradient[..., None, None, :]

    def hessian(self, vectors):
        vectors, radius, safe_radius, unit = _polar(vectors)
        eye = numpy.eye(vectors.shape[-1])
        hessian = _radial_hessian(
            self.derivative(radius, safe_radius),
            self.second_derivative(radius, safe_radius),
            safe_radius, unit
        )
        return self._mark_singular_origin(
            eye[:, :, None, None] * hessian[..., None, None, :, :], radius
        )


class ThinPlateSplineKernel(RadialKernel):
    r'''
    :math:`G(x) = \|x\| I`, the thin-plate kernel used in three dimensions
    '''
    singular_hessian_at_origin = True

    def phi(self, radius, safe_radius):
        return radius

    def derivative(self, radius, safe_radius):
        return numpy.ones_like(radius)

    def second_derivative(self, radius, safe_radius):
        return numpy.zeros_like(radius)


class ThinPlateR2LogRSplineKernel(RadialKernel):
    r'''
    :math:`G(x) = \|x\|^2 \log \|x\| I`, the thin-plate kernel of the plane.
    :math:`G(0) = 0`.
    '''
    singular_hessian_at_origin = True

    def phi(self, radius, safe_radius):
        return radius ** 2 * numpy.log(safe_radius)

    def derivative(self, radius, safe_radius):
        return radius * (2 * numpy.log(safe_radius) + 1)

    def second_derivative(self, radius, safe_radius):
        return 2 * numpy.log(safe_radius) + 3


class VolumeSplineKernel(RadialKernel):
    r'''
    :math:`G(x) = \|x\|^3 I`
    '''
    def phi(self, radius, safe_radius):
        return radius ** 3

    def derivative(self, radius, safe_radius):
        return 3 * radius ** 2

    def second_derivative(self, radius, safe_radius):
        return 6 * radius


class ElasticKernel(KernelFunction):
    r"""
    Kernels of the form

    .. math::
        G(x) = \alpha f(r) I - 3 g(r) x x^T, r = \|x\|

    where :math:`\alpha` is derived from the Poisson ratio :math:`\nu` of
    the modelled material (Davis et al., IEEE TMI 16(3), 1997).
    """
    def __init__(self, poisson_ratio=.25):
        super(ElasticKernel, self).__init__(poisson_ratio=poisson_ratio)
        self._alpha = self.alpha_from_poisson_ratio(poisson_ratio)

    def alpha_from_poisson_ratio(self, poisson_ratio):
        raise NotImplementedError()

    @property
    def alpha(self):
        return self._alpha

    @alpha.setter
    def alpha(self, value):
        self._alpha = value

    @property
    def poisson_ratio(self):
        return self._poisson_ratio

    @poisson_ratio.setter
    def poisson_ratio(self, value):
        self._poisson_ratio = value
        self._alpha = self.alpha_from_poisson_ratio(value)

    def f(self, radius, safe_radius):
        raise NotImplementedError()

    def f_derivatives(self, radius, safe_radius):
        raise NotImplementedError()

    def g(self, radius, safe_radius):
        raise NotImplementedError()

    def g_derivatives(self, radius, safe_radius):
        raise NotImplementedError()

    def G(self, vectors):
        vectors, radius, safe_radius, _ = _polar(vectors)
        eye = numpy.eye(vectors.shape[-1])
        outer = vectors[..., :, None] * vectors[..., None, :]
        return (
            self.alpha * self.f(radius, safe_radius)[..., None, None] * eye -
            3 * self.g(radius, safe_radius)[..., None, None] * outer
        )

    def jacobian(self, vectors):
        vectors, radius, safe_radius, unit = _polar(vectors)
        eye = numpy.eye(vectors.shape[-1])
        outer = vectors[..., :, None] * vectors[..., None, :]
        f1, _ = self.f_derivatives(radius, safe_radius)
        g = self.g(radius, safe_radius)[..., None, None, None]
        g1, _ = self.g_derivatives(radius, safe_radius)

        jacobian = self.alpha * eye[:, :, None] * (f1[..., None] * unit)[..., None, None, :]
        jacobian -= 3 * (g1[..., None] * unit)[..., None, None, :] * outer[..., None]
        jacobian -= 3 * g * (
            eye[:, None, :] * vectors[..., None, :, None] +
            vectors[..., :, None, None] * eye[None, :, :]
        )
        return jacobian

    def hessian(self, vectors):
        vectors, radius, safe_radius, unit = _polar(vectors)
        eye = numpy.eye(vectors.shape[-1])
        outer = vectors[..., :, None] * vectors[..., None, :]
        f1, f2 = self.f_derivatives(radius, safe_radius)
        g1, g2 = self.g_derivatives(radius, safe_radius)
        g = self.g(radius, safe_radius)[..., None, None, None, None]
        f_hessian = _radial_hessian(f1, f2, safe_radius, unit)
        g_hessian = _radial_hessian(g1, g2, safe_radius, unit)
        g_gradient = g1[..., None] * unit

        # indices are (a, b, c, e)
        x_a = vectors[..., :, None, None, None]
        x_b = vectors[..., None, :, None, None]
        hessian = self.alpha * eye[:, :, None, None] * f_hessian[..., None, None, :, :]
        hessian -= 3 * g_hessian[..., None, None, :, :] * outer[..., None, None]
        hessian -= 3 * g_gradient[..., None, None, :, None] * (
            eye[:, None, None, :] * x_b + x_a * eye[None, :, None, :]
        )
        hessian -= 3 * g_gradient[..., None, None, None, :] * (
            eye[:, None, :, None] * x_b + x_a * eye[None, :, :, None]
        )
        hessian -= 3 * g * (
            eye[:, None, :, None] * eye[None, :, None, :] +
            eye[None, :, :, None] * eye[:, None, None, :]
        )
        return self._mark_singular_origin(hessian, radius)

    def __repr__(self):
        return '%s(poisson_ratio=%r)' % (type(self).__name__, self.poisson_ratio)


class ElasticBodySplineKernel(ElasticKernel):
    r'''
    :math:`G(x) = (\alpha r^2 I - 3 x x^T) r`, :math:`\alpha = 12(1 - \nu) - 1`
    '''
    def alpha_from_poisson_ratio(self, poisson_ratio):
        return 12 * (1 - poisson_ratio) - 1

    def f(self, radius, safe_radius):
        return radius ** 3

    def f_derivatives(self, radius, safe_radius):
        return 3 * radius ** 2, 6 * radius

    def g(self, radius, safe_radius):
        return radius

    def g_derivatives(self, radius, safe_radius):
        return numpy.ones_like(radius), numpy.zeros_like(radius)


class ElasticBodyReciprocalSplineKernel(ElasticKernel):
    r'''
    :math:`G(x) = (\alpha r^2 I - 3 x x^T) / r`, :math:`\alpha = 8(1 - \nu) - 1`.
    :math:`G(0) = 0`.
    '''
    singular_hessian_at_origin = True

    def alpha_from_poisson_ratio(self, poisson_ratio):
        return 8 * (1 - poisson_ratio) - 1

    def f(self, radius, safe_radius):
        return radius

    def f_derivatives(self, radius, safe_radius):
        return numpy.ones_like(radius), numpy.zeros_like(radius)

    def g(self, radius, safe_radius):
        return 1. / safe_radius

    def g_derivatives(self, radius, safe_radius):
        return -safe_radius ** -2, 2 * safe_radius ** -3
