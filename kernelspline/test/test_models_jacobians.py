import warnings

import numpy
from numpy import testing
import pytest

from kernelspline import model
from kernelspline.util import vectorized_dot_product

warnings.simplefilter("ignore")


kernels_to_test = {
    'ThinPlateSplineKernel': model.ThinPlateSplineKernel,
    'ThinPlateR2LogRSplineKernel': model.ThinPlateR2LogRSplineKernel,
    'VolumeSplineKernel': model.VolumeSplineKernel,
    'ElasticBodySplineKernel': model.ElasticBodySplineKernel,
    'ElasticBodyReciprocalSplineKernel': model.ElasticBodyReciprocalSplineKernel,
}


def deformed_transform(kernel_name, n_landmarks=8, stiffness=0., random=None):
    if random is None:
        random = numpy.random.RandomState(0)
    source = random.rand(n_landmarks, 3) - .5
    target = source + .1 * random.randn(n_landmarks, 3)
    return model.KernelTransform(
        kernels_to_test[kernel_name](), dimension=3, stiffness=stiffness,
        source_landmarks=source, target_landmarks=target
    )


def position_stencil(points, eps):
    return numpy.vstack([
        points + sign * eps * axis
        for axis in numpy.eye(points.shape[1])
        for sign in (-1, 1)
    ])


def finite_difference_position(function, points, eps):
    n = len(points)
    values = function(position_stencil(points, eps))
    derivative = []
    for i in range(points.shape[1]):
        f_minus = values[2 * i * n: (2 * i + 1) * n]
        f_plus = values[(2 * i + 1) * n: (2 * i + 2) * n]
        derivative.append((f_plus - f_minus) / (2 * eps))
    return derivative


@pytest.mark.parametrize('kernel_name', sorted(kernels_to_test))
def test_model_jacobian_parameter(kernel_name, eps=1e-3, n_points=20):
    random = numpy.random.RandomState(0)
    transform = deformed_transform(kernel_name, random=random)
    points = random.randn(n_points, 3)
    jac = transform.jacobian(points)
    fixed_parameter = transform.fixed_parameter

    assert jac.shape == (n_points, transform.number_of_parameters, 3)

    for n_param in range(transform.number_of_parameters):
        parameter = fixed_parameter.copy()
        parameter[n_param] -= eps
        transform.fixed_parameter = parameter
        f_minus = transform.transform_points(points)
        parameter[n_param] += 2 * eps
        transform.fixed_parameter = parameter
        f_plus = transform.transform_points(points)

        testing.assert_allclose(
            (f_plus - f_minus) / (2 * eps), jac[:, n_param, :], rtol=1e-5, atol=1e-7,
            err_msg="Transform with %s parameter %d did not pass the jacobian test" % (
                kernel_name, n_param
            )
        )
    transform.fixed_parameter = fixed_parameter


@pytest.mark.parametrize('kernel_name', sorted(kernels_to_test))
def test_model_jacobian_position(kernel_name, eps=1e-6, n_points=5):
    random = numpy.random.RandomState(1)
    transform = deformed_transform(kernel_name, random=random)
    points = random.randn(n_points, 3)

    jac_approx = numpy.empty((n_points, 3, 3))
    for i, derivative in enumerate(finite_difference_position(transform.transform_points, points, eps)):
        jac_approx[:, i, :] = derivative

    testing.assert_allclose(
        jac_approx, transform.jacobian_position(points), rtol=1e-4, atol=1e-5,
        err_msg="Transform with %s did not pass the jacobian with respect to position test" % kernel_name
    )


@pytest.mark.parametrize('kernel_name', sorted(kernels_to_test))
def test_model_hessian_position(kernel_name, eps=1e-5, n_points=5):
    random = numpy.random.RandomState(2)
    transform = deformed_transform(kernel_name, random=random)
    points = random.randn(n_points, 3)

    hessian = transform.hessian_position(points)
    hessian_approx = numpy.empty_like(hessian)
    for i, derivative in enumerate(finite_difference_position(transform.jacobian_position, points, eps)):
        hessian_approx[:, i, :, :] = derivative

    testing.assert_allclose(
        hessian_approx, hessian, rtol=1e-4, atol=1e-4,
        err_msg="Transform with %s did not pass the hessian with respect to position test" % kernel_name
    )
    testing.assert_allclose(hessian, hessian.swapaxes(1, 2), atol=1e-10)


@pytest.mark.parametrize('kernel_name', sorted(kernels_to_test))
def test_model_jacobian_parameter_jacobian_position(kernel_name, eps=1e-6, n_points=5):
    random = numpy.random.RandomState(3)
    transform = deformed_transform(kernel_name, random=random)
    points = random.randn(n_points, 3)

    jac_jac = transform.jacobian_parameter_jacobian_position(points)
    jac_jac_approx = numpy.empty_like(jac_jac)
    for i, derivative in enumerate(finite_difference_position(transform.jacobian, points, eps)):
        jac_jac_approx[:, :, i, :] = derivative

    testing.assert_allclose(
        jac_jac_approx, jac_jac, rtol=1e-4, atol=1e-5,
        err_msg="Transform with %s did not pass the parameter and position jacobian test" % kernel_name
    )


@pytest.mark.parametrize('kernel_name', sorted(kernels_to_test))
def test_model_jacobian_parameter_hessian_position(kernel_name, eps=1e-5, n_points=3):
    random = numpy.random.RandomState(4)
    transform = deformed_transform(kernel_name, random=random)
    points = random.randn(n_points, 3)

    jac_hessian = transform.jacobian_parameter_hessian_position(points)
    assert jac_hessian.shape == (n_points, transform.number_of_parameters, 3, 3, 3)

    jac_hessian_approx = numpy.empty_like(jac_hessian)
    derivatives = finite_difference_position(transform.jacobian_parameter_jacobian_position, points, eps)
    for i, derivative in enumerate(derivatives):
        jac_hessian_approx[:, :, i, :, :] = derivative

    testing.assert_allclose(
        jac_hessian_approx, jac_hessian, rtol=1e-4, atol=1e-4,
        err_msg="Transform with %s did not pass the parameter and hessian jacobian test" % kernel_name
    )


@pytest.mark.parametrize('kernel_name', sorted(kernels_to_test))
def test_model_jacobian_vector_matrices(kernel_name, eps=1e-3, n_points=10):
    random = numpy.random.RandomState(5)
    transform = deformed_transform(kernel_name, random=random)
    points = random.randn(n_points, 3)
    vectors = random.rand(n_points, 3) - .5
    jac = transform.jacobian_vector_matrices(points, vectors)
    fixed_parameter = transform.fixed_parameter

    for n_param in range(0, transform.number_of_parameters, 5):
        parameter = fixed_parameter.copy()
        parameter[n_param] -= eps
        transform.fixed_parameter = parameter
        f_minus = transform.transform_vectors(points, vectors)
        parameter[n_param] += 2 * eps
        transform.fixed_parameter = parameter
        f_plus = transform.transform_vectors(points, vectors)

        testing.assert_allclose(
            (f_plus - f_minus) / (2 * eps), jac[:, n_param, :], rtol=1e-5, atol=1e-7,
            err_msg="Transform with %s parameter %d did not pass the vector jacobian test" % (
                kernel_name, n_param
            )
        )


@pytest.mark.parametrize('kernel_name', sorted(kernels_to_test))
def test_model_jacobian_tensor_matrices(kernel_name, eps=1e-4, n_points=10):
    random = numpy.random.RandomState(6)
    transform = deformed_transform(kernel_name, random=random)
    points = random.randn(n_points, 3)
    tensors = random.rand(n_points, 3) - .5
    tensors = vectorized_dot_product(tensors[:, :, None], tensors[:, None, :])
    jac = transform.jacobian_tensor_matrices(points, tensors)
    fixed_parameter = transform.fixed_parameter

    for n_param in range(0, transform.number_of_parameters, 5):
        parameter = fixed_parameter.copy()
        parameter[n_param] -= eps
        transform.fixed_parameter = parameter
        f_minus = transform.transform_tensors(points, tensors)
        parameter[n_param] += 2 * eps
        transform.fixed_parameter = parameter
        f_plus = transform.transform_tensors(points, tensors)

        testing.assert_allclose(
            (f_plus - f_minus) / (2 * eps), jac[:, n_param, :, :], rtol=1e-4, atol=1e-6,
            err_msg="Transform with %s parameter %d did not pass the tensor jacobian test" % (
                kernel_name, n_param
            )
        )


def test_transform_vectors_uses_spatial_jacobian():
    random = numpy.random.RandomState(7)
    transform = deformed_transform('VolumeSplineKernel', random=random)
    points = random.randn(4, 3)
    vectors = random.randn(4, 3)

    jacobian_position = transform.jacobian_position(points)
    expected = numpy.einsum('pca,pa->pc', jacobian_position, vectors)

    testing.assert_allclose(transform.transform_vectors(points, vectors), expected, rtol=1e-12)
