"""
The :mod:`kernelspline.model` module gathers the landmark spline transforms.
"""


from .basis import *
from .errors import *
from .landmarks import *
from .kernel import *
from .util import *

__all__ = [
    'Model', 'LandmarkSet', 'KernelTransform',
    'KernelFunction', 'RadialKernel', 'ElasticKernel', 'NOT_APPLICABLE',
    'ThinPlateSplineKernel', 'ThinPlateR2LogRSplineKernel', 'VolumeSplineKernel',
    'ElasticBodySplineKernel', 'ElasticBodyReciprocalSplineKernel',
    'KernelTransformError', 'SizeMismatchError', 'InvalidParameterLengthError',
    'StaleCacheError', 'RankDeficientSystemWarning',
    'grid_from_bounding_box_and_resolution'
]
