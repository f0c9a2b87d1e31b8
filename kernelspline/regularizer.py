import numpy

from . import model

__all__ = [
    'Regularizer', 'BendingEnergyKernelTransform',
]


class Regularizer(object):
    def __init__(self):
        raise NotImplementedError()

    def metric_gradient_displacements(self):
        raise NotImplementedError()


class BendingEnergyKernelTransform(Regularizer):
    r'''
    Bending energy of the deformable part of a landmark spline

    .. math::
        E = w \sum_{a \leq D} c_{\cdot a}^T K c_{\cdot a} = w\, c^T K c

    with :math:`c` the deformable coefficients flattened landmark by landmark
    and :math:`K` the kernel block of the system. As :math:`c = S d` with
    :math:`S` the upper left block of :math:`L^{-1}`, the gradient with
    respect to the displacements is :math:`2 w S^T K c`.
    '''
    def __init__(self, transform, weight):
        if hasattr(transform, 'transform'):  # Is it a nested transform
            self.transform = transform.transform
        else:
            self.transform = transform
        if not isinstance(self.transform, model.KernelTransform):
            raise ValueError("Transform must be an instance of KernelTransform not %s" % (str(type(transform))))

        self.weight = weight

    def energy(self):
        coefficients = self.transform.coefficients.deformation.ravel()
        if len(coefficients) == 0:
            return 0.
        return self.weight * numpy.dot(coefficients, numpy.dot(self.transform.K, coefficients))

    def metric_gradient_displacements(self):
        coefficients = self.transform.coefficients.deformation.ravel()
        n = len(coefficients)
        if n == 0:
            return 0., numpy.zeros(0)

        k = self.transform.K
        k_coefficients = numpy.dot(k, coefficients)
        bending_energy = self.weight * numpy.dot(coefficients, k_coefficients)
        s = self.transform.l_inverse[:n, :n]
        bending_energy_jacobian = 2 * self.weight * numpy.dot(s.T, k_coefficients)

        return bending_energy, bending_energy_jacobian
