#!/usr/bin/python3
# Setup file for lfsgate
# Copyright (C) 2026 The lfsgate Authors
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later

from setuptools import setup

tests_require = ["gevent"]


setup(
    name="lfsgate",
    version="0.1.0",
    description="Reject git pushes that reference missing Git LFS objects",
    license="Apache-2.0 OR GPL-2.0-or-later",
    python_requires=">=3.9",
    packages=["lfsgate"],
    package_data={"": ["py.typed"]},
    install_requires=["dulwich>=0.24.0"],
    extras_require={
        "gevent": ["gevent"],
        "test": tests_require,
    },
    entry_points={
        "console_scripts": ["lfsgate=lfsgate.cli:_main"],
    },
    test_suite="tests.test_suite",
)
