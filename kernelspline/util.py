__all__ = ['vectorized_dot_product']


def vectorized_dot_product(a, b):
    r'''
    Matrix product over the last two axes of `a` and `b`, broadcasting the
    axes of `b` after the first one.
    '''
    return (a[..., None] * b[:, None, ...]).sum(-2)
