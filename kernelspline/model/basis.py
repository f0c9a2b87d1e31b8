r"""
Module with the basic class defining transformation models
"""

import numpy
from ..util import vectorized_dot_product

__all__ = ['Model']


class Model(object):
    r"""Base Class for Transformations

    A transformation is defined as a map:

    .. math::
        \phi: \Omega \mapsto \Omega


    where :math:`\Omega \subseteq \Re^D` and the
    transform has a parameter vector :math:`\theta \in \Re^M`
    with :math:`M` the number of parameters

    Notes
    ----------
    Derivatives are returned transposed, with the output coordinate of
    :math:`\phi` as the last axis. For :math:`\phi(x; \theta) = (\phi_1(x;\theta),\ldots, \phi_D(x;\theta))`

    .. math::
        [D^T_\theta\phi(x; \theta)]_{ji} = \frac{\partial \phi_i(x; \theta)}{\partial \theta_j},
        i=1\ldots D, j=1\ldots M

    .. math::
        [D^T_x\phi(x; \theta)]_{ji} = \frac{\partial \phi_i(x; \theta)}{\partial x_j},
        i, j =1\ldots D

    .. math::
        [H_x\phi(x; \theta)]_{jki} = \frac{\partial^2 \phi_i(x; \theta)}{\partial x_j \partial x_k},
        i, j, k =1\ldots D

    A subclass may differentiate with respect to a variable other than
    :attr:`parameter`; its :meth:`jacobian` then says which one.


    attributes
    ----------
    `parameter` : array-like, shape (n_parameters)
        Stores the parameter vector :math:`\theta` of the transform.

    `identity` : array-like, shape (n_parameters)
        Stores the parameter value :math:`\theta_0` such that :math:`\phi(x; \theta_0) = x`.

    `bounds` : array-like, shape (n_parameters, 2)
        Stores the upper and lower bounds for each component of the parameter vectors
        :math:`\theta` such that :math:`\text{bounds}_{i0} \leq \theta_i \leq \text{bounds}_{i1}`
    """

    has_nonzero_spatial_hessian = False
    has_nonzero_jacobian_of_spatial_hessian = False

    @property
    def identity(self):
        return None

    @property
    def number_of_parameters(self):
        return len(self.parameter)

    def transform_points(self, points):
        r"""Transform a set of points.


        Parameters
        ----------
        x :  array-like, shape (n_points, n_dimensions)
            Points to be transformed


        Returns
        -------
        y :  array-like, shape (n_points, n_dimensions)
            :math:`y = \phi(x)`

       """
        raise NotImplementedError()

    def transform_vectors(self, points, vectors):
        r"""Transform a set of vectors located in space.


        Parameters
        ----------
        x :  array-like, shape (n_points, n_dimensions)
            Location of the vectors to be transformed

        v :  array-like, shape (n_points, n_dimensions)
            Vectors to be transformed

        Returns
        -------
        w :  array-like, shape (n_points, n_dimensions)
            :math:`w = D_x^T\phi(x) \cdot v`
       """

        jacobians = self.jacobian_position(points)
        res = vectorized_dot_product(jacobians, vectors[..., None])[..., 0]
        return numpy.atleast_2d(res)

    def transform_tensors(self, points, tensors):
        r"""Transform a set of tensors located in space.


        Parameters
        ----------
        x :  array-like, shape (n_points, n_dimensions)
            Location of the tensors to be transformed

        T :  array-like, shape (n_points, n_dimensions, n_dimensions)
            Tensors to be transformed

        Returns
        -------
        S :  array-like, shape (n_points, n_dimensions, n_dimensions)
            :math:`S = D^T_x\phi(x) \cdot T \cdot D_x\phi(x)`
       """
        jacobians = self.jacobian_position(points)
        return vectorized_dot_product(
            vectorized_dot_product(jacobians, tensors),
            jacobians.swapaxes(-1, -2)
        )

    def jacobian(self, points):
        r"""Transposed Jacobian of the transform with respect to its parameters

        Returns
        -------
        J :  array-like, shape (n_points, n_parameters, n_dimensions)
            :math:`J = D^T_\theta\phi(x)`
       """
        raise NotImplementedError()

    def jacobian_position(self, points):
        r"""Transposed Jacobian of the transform with respect to its location

        Returns
        -------
        J :  array-like, shape (n_points, n_dimensions, n_dimensions)
            :math:`J = D^T_x\phi(x)`
       """
        raise NotImplementedError()

    def hessian_position(self, points):
        r"""Hessian of the transform with respect to its location

        Returns
        -------
        H :  array-like, shape (n_points, n_dimensions, n_dimensions, n_dimensions)
            :math:`H_{jki} = \frac{\partial^2 \phi_i(x)}{\partial x_j \partial x_k}`
       """
        raise NotImplementedError()

    def jacobian_parameter_jacobian_position(self, points):
        r"""Iterated Transposed Jacobian of the transform with respect to
        its parameter and location

        Returns
        -------
        J :  array-like, shape (n_points, n_parameters, n_dimensions, n_dimensions)
            :math:`J_{ijk} = \frac{\partial \phi_k(x)}{\partial \theta_i \partial x_j}`
       """
        raise NotImplementedError()

    def jacobian_parameter_hessian_position(self, points):
        r"""Jacobian of the spatial Hessian with respect to the parameter

        Returns
        -------
        J :  array-like, shape (n_points, n_parameters, n_dimensions, n_dimensions, n_dimensions)
            :math:`J_{ijkl} = \frac{\partial \phi_l(x)}{\partial \theta_i \partial x_j \partial x_k}`
       """
        raise NotImplementedError()

    def jacobian_vector_matrices(self, points, vectors):
        r"""Transposed Jacobian with respect to the transform parameter
        of the expression :math:`D^T_x \phi(x) \cdot v`

        Returns
        -------
        J :  array-like, shape (n_points, n_parameters, n_dimensions)
            :math:`J = D^T_\theta[D^T_x\phi(x) \cdot v]`
       """
        jacobian_parameter_jacobian_position = self.jacobian_parameter_jacobian_position(points)

        return vectorized_dot_product(
            jacobian_parameter_jacobian_position,
            vectors[:, None, :, None]
        )[:, :, :, 0]

    def jacobian_tensor_matrices(self, points, tensors):
        r"""Transposed Jacobian with respect to the transform parameter
        of the expression :math:`D_x^T \phi(x) \cdot T \cdot D_x\phi(x)`

        Returns
        -------
        J :  array-like, shape (n_points, n_parameters, n_dimensions, n_dimensions)
            :math:`J = D^T_\theta[D^T_x\phi(x) \cdot T\cdot D_x\phi(x)]`
       """
        jacobians = self.jacobian_position(points)
        jacobian_parameter_jacobian_position = self.jacobian_parameter_jacobian_position(points)

        tensor_jacobian = vectorized_dot_product(tensors, jacobians.swapaxes(-1, -2))
        djacobian_tensor_jacobian = vectorized_dot_product(
            jacobian_parameter_jacobian_position,
            tensor_jacobian[:, None, :, :]
        )

        return djacobian_tensor_jacobian + djacobian_tensor_jacobian.swapaxes(-1, -2)

    @property
    def bounds(self):
        r"""
        Stores the upper and lower bounds for each component of the parameter vectors
        :math:`\theta` such that :math:`\text{bounds}_{i0} \leq \theta_i \leq \text{bounds}_{i1}`
        """
        return None
