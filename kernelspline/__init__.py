"""
Landmark kernel splines for Python
==================================

kernelspline is a Python module implementing landmark based kernel spline
transforms (thin-plate, volume and elastic body splines) together with the
derivatives that registration optimizers need.

"""
__version__ = '0.1'

from .model import *
from .regularizer import *

from . import model
from . import regularizer
from . import util
