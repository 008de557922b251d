# -*- coding: utf-8 -*-
"""cognito-secret-rotation a module for rotating Cognito app client credentials held in
AWS Secrets Manager.

This module provides a Secrets Manager rotation function that creates a new Cognito user pool
app client for each rotation, tests it against the OAuth2 token endpoint and retires the
client of the previous secret version.

"""

import setuptools
import re
from io import open

VERSIONFILE="cognito_secret_rotation/_version.py"
verstrline = open(VERSIONFILE, "rt").read()
VSRE = r"^__version__ = ['\"]([^'\"]*)['\"]"
mo = re.search(VSRE, verstrline, re.M)
if mo:
    verstr = mo.group(1)
else:
    raise RuntimeError("Unable to find version string in %s." % (VERSIONFILE,))

with open("README.md", "r", encoding='utf-8') as fh:
    long_description = fh.read()

setuptools.setup(
    name='cognito_secret_rotation',
    version=verstr,
    author="Mike Moore",
    author_email="z_z_zebra@yahoo.com",
    description="A Secrets Manager rotation function that rotates Cognito user pool app client credentials and validates them against the token endpoint before promotion",
    long_description_content_type="text/markdown",
    long_description=long_description,
    url="https://github.com/Mikemoore63/cognito-secret-rotation",
    packages=setuptools.find_packages(exclude=["*.tests", "*.tests.*"]),
    tests_require=['pytest'],
    extras_require={
        "test": ['pytest'],
    },
    include_package_data=True,
    license="MIT",
    scripts=[],
    python_requires=">=3.8",
    install_requires=[
        "boto3>=1.26,<2.0",
        "botocore>=1.29,<2.0",
        "requests>=2.25,<3.0",
    ],
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],

)
