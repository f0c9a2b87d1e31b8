import numpy

__all__ = ['grid_from_bounding_box_and_resolution']


def grid_from_bounding_box_and_resolution(bounding_box, resolution):
    r'''
    Regular grid of points covering a box, usable as landmarks

    Parameters
    ----------
    bounding_box :  array-like, shape (n_dimensions, 2)
        Lower and upper corner of the box along each axis

    resolution :  float or array-like, shape (n_dimensions)
        Spacing of the grid

    Returns
    -------
    points :  array-like, shape (n_points, n_dimensions)
    '''
    bounding_box = numpy.asarray(bounding_box, dtype=float)
    if numpy.isscalar(resolution):
        resolution = numpy.repeat(resolution, len(bounding_box))
    widths = bounding_box[:, 1] - bounding_box[:, 0]
    resolution = numpy.minimum(resolution, widths)

    axes = numpy.mgrid[tuple(
        slice(low, high + step / 2., step)
        for (low, high), step in zip(bounding_box, resolution)
    )]

    return axes.reshape(len(bounding_box), -1).T.astype(float)
