"""
A setuptools based setup module.
See:
https://packaging.python.org/guides/distributing-packages-using-setuptools/
https://github.com/pypa/sampleproject
"""

from setuptools import setup, find_packages
import os
import re

here = os.path.abspath(os.path.dirname(__file__))

with open(os.path.join(here, 'src', 'ScopfEngine', '__version__.py'), encoding='utf-8') as f:
    __ScopfEngine_VERSION__ = re.search(r'__ScopfEngine_VERSION__ = "([^"]+)"', f.read()).group(1)

long_description = """# ScopfEngine

AC security constrained optimal power flow (preventive N-1) for MATPOWER cases,
formulated as one sparse nonlinear program and solved with a primal-dual interior point method.

pip install ScopfEngine
"""

description = 'AC security constrained optimal power flow as a sparse nonlinear program'

pkgs_to_exclude = ['docs', 'research', 'tests', 'tutorials']

packages = find_packages(where='src', exclude=pkgs_to_exclude)

packages2 = list()
for package in packages:
    elms = package.split('.')
    excluded = False
    for exclude in pkgs_to_exclude:
        if exclude in elms:
            excluded = True

    if not excluded:
        packages2.append(package)

dependencies = ['setuptools>=41.0.1',
                'wheel>=0.37.2',
                "numpy>=1.22",
                "scipy>=1.0.0",
                "pandas>=2.2.3",
                "matplotlib>=2.1.1",
                "numba>=0.60",  # to compile routines natively
                ]

extras_require = {
    'test': ["pytest>=7.2"],
    'pardiso': ["pypardiso"],  # alternative sparse solver for the KKT systems
}

setup(
    name='ScopfEngine',  # Required
    version=__ScopfEngine_VERSION__,  # Required
    license='MPL2',
    description=description,  # Optional
    long_description=long_description,  # Optional
    long_description_content_type='text/markdown',  # Optional (see note above)
    url='https://github.com/SanPen/GridCal',  # Optional
    classifiers=[
        'License :: OSI Approved :: Mozilla Public License 2.0 (MPL 2.0)',
        'Programming Language :: Python :: 3.8',
    ],
    keywords='power systems optimal power flow security constrained',  # Optional
    packages=packages2,  # Required
    package_dir={'': 'src'},
    include_package_data=True,
    python_requires='>=3.8',
    install_requires=dependencies,
    extras_require=extras_require,
)
