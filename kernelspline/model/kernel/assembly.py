r'''
Assembly of the linear system of a landmark spline.

For :math:`N` landmarks :math:`p_i \in \Re^D` with displacements
:math:`d_i` the spline coefficients :math:`W` solve

.. math::
    \begin{bmatrix} K & P \\ P^T & 0 \end{bmatrix} W =
    \begin{bmatrix} d \\ 0 \end{bmatrix}

where :math:`K_{ij} = G(p_i - p_j)` for :math:`i \neq j`, the diagonal
blocks are given by the reflexive kernel, and the :math:`i`-th block row of
:math:`P` is :math:`[p_{i1} I, \ldots, p_{iD} I, I]`. Landmark :math:`i`
owns rows :math:`iD\ldots iD + D - 1`.

Once solved, the displacement at any point :math:`x` is :math:`M(x) W`
with :math:`M(x)` given by :func:`basis_matrix`.
'''
import numpy

__all__ = [
    'compute_k', 'compute_p', 'compute_l', 'compute_y',
    'affine_basis', 'basis_matrix', 'basis_matrix_jacobian', 'basis_matrix_hessian'
]


def compute_k(kernel_function, source, stiffness):
    n, d = source.shape
    blocks = numpy.zeros((n, d, n, d))

    rows, columns = numpy.triu_indices(n, 1)
    if len(rows) > 0:
        g = kernel_function.G(source[rows] - source[columns])
        blocks[rows, :, columns, :] = g
        blocks[columns, :, rows, :] = g.swapaxes(-1, -2)

    for i in range(n):
        blocks[i, :, i, :] = kernel_function.reflexive_G(i, stiffness, d)

    return blocks.reshape(n * d, n * d)


def affine_basis(points):
    r'''
    Rows of the affine part of the system for each point

    Returns
    -------
    B :  array-like, shape (n_points, n_dimensions, n_dimensions * (n_dimensions + 1))
        :math:`B_{k, a, jD + b} = \delta_{ab} [x_k, 1]_j`
    '''
    n, d = points.shape
    homogeneous = numpy.c_[points, numpy.ones(n)]
    basis = homogeneous[:, None, :, None] * numpy.eye(d)[None, :, None, :]
    return basis.reshape(n, d, d * (d + 1))


def compute_p(source):
    n, d = source.shape
    return affine_basis(source).reshape(n * d, d * (d + 1))


def compute_l(k, p):
    n_affine = p.shape[1]
    return numpy.block([
        [k, p],
        [p.T, numpy.zeros((n_affine, n_affine))]
    ])


def compute_y(displacements):
    _, d = displacements.shape
    return numpy.r_[displacements.ravel(), numpy.zeros(d * (d + 1))]


def basis_matrix(kernel_function, source, points):
    r'''
    Row blocks :math:`M(x)` of the spline at each point :math:`x`

    Returns
    -------
    M :  array-like, shape (n_points, n_dimensions, n_landmarks * n_dimensions + n_dimensions * (n_dimensions + 1))
    '''
    n_points, d = points.shape
    n = len(source)
    g = kernel_function.G(points[:, None, :] - source[None, :, :])
    kernel_part = g.transpose(0, 2, 1, 3).reshape(n_points, d, n * d)
    return numpy.concatenate((kernel_part, affine_basis(points)), axis=-1)


def basis_matrix_jacobian(kernel_function, source, points):
    r'''
    Returns
    -------
    dM :  array-like, shape (n_points, n_dimensions, n_dimensions, n_columns)
        :math:`dM_{k, c, a, m} = \frac{\partial M_{am}(x_k)}{\partial x_c}`
    '''
    n_points, d = points.shape
    n = len(source)
    jacobian = kernel_function.jacobian(points[:, None, :] - source[None, :, :])
    kernel_part = jacobian.transpose(0, 4, 2, 1, 3).reshape(n_points, d, d, n * d)

    homogeneous_derivative = numpy.zeros((d, d + 1))
    homogeneous_derivative[:, :d] = numpy.eye(d)
    affine_part = (
        homogeneous_derivative[:, None, :, None] * numpy.eye(d)[None, :, None, :]
    ).reshape(d, d, d * (d + 1))
    affine_part = numpy.broadcast_to(affine_part, (n_points,) + affine_part.shape)

    return numpy.concatenate((kernel_part, affine_part), axis=-1)


def basis_matrix_hessian(kernel_function, source, points):
    r'''
    Returns
    -------
    d2M :  array-like, shape (n_points, n_dimensions, n_dimensions, n_dimensions, n_columns)
        :math:`d2M_{k, c, e, a, m} = \frac{\partial^2 M_{am}(x_k)}{\partial x_c \partial x_e}`
    '''
    n_points, d = points.shape
    n = len(source)
    hessian = kernel_function.hessian(points[:, None, :] - source[None, :, :])
    kernel_part = hessian.transpose(0, 4, 5, 2, 1, 3).reshape(n_points, d, d, d, n * d)
    affine_part = numpy.zeros((n_points, d, d, d, d * (d + 1)))
    return numpy.concatenate((kernel_part, affine_part), axis=-1)
