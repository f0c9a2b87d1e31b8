#!/usr/bin/env python
from setuptools import setup, find_packages

DISTNAME = 'kernelspline'
DESCRIPTION = 'landmark kernel spline transforms'

LONG_DESCRIPTION = ''
MAINTAINER = ''
MAINTAINER_EMAIL = ''
URL = ''
LICENSE = ''
DOWNLOAD_URL = ''
VERSION = '0.1'


if __name__ == "__main__":
    requires = [
        req.strip() for req in open('requirements.txt').readlines()
        if req.strip()
    ]

    setup(
        name=DISTNAME,
        maintainer=MAINTAINER,
        maintainer_email=MAINTAINER_EMAIL,
        description=DESCRIPTION,
        license=LICENSE,
        url=URL,
        version=VERSION,
        install_requires=requires,
        extras_require={'test': ['pytest']},
        download_url=DOWNLOAD_URL,
        long_description=LONG_DESCRIPTION,
        classifiers=[
            'Intended Audience :: Science/Research',
            'Programming Language :: Python',
            'Programming Language :: Python :: 3',
            'Topic :: Scientific/Engineering',
            'Operating System :: Microsoft :: Windows',
            'Operating System :: POSIX',
            'Operating System :: Unix',
            'Operating System :: MacOS'
        ],
        packages=find_packages(),
    )
