r'''
Exceptions and warnings raised by the landmark transforms
'''

__all__ = [
    'KernelTransformError', 'SizeMismatchError', 'InvalidParameterLengthError',
    'StaleCacheError', 'RankDeficientSystemWarning'
]


class KernelTransformError(Exception):
    pass


class SizeMismatchError(KernelTransformError, ValueError):
    r'''
    The source and target landmark sets do not have the same number of
    points, or a point set does not have the dimension of the transform.
    '''
    pass


class InvalidParameterLengthError(KernelTransformError, ValueError):
    r'''
    A flat parameter vector can not be reshaped into the landmarks of the
    transform.
    '''
    pass


class StaleCacheError(KernelTransformError, RuntimeError):
    r'''
    A stage of the linear system was requested before the stage it depends on
    was computed.
    '''
    pass


class RankDeficientSystemWarning(RuntimeWarning):
    pass
