#!/usr/bin/python3
# Setup file for gitbind
# Copyright (C) 2008-2022 Jelmer Vernooĳ <jelmer@jelmer.uk>
# Copyright (C) 2026 The gitbind authors
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later

from setuptools import setup

tests_require = ["pytest"]


setup(
    name="gitbind",
    version="0.1.0",
    description="Object-level access to git repositories",
    long_description=(
        "gitbind exposes the objects of a git repository (commits, trees, "
        "blobs and tags) as Python objects, on top of a pure-Python loose "
        "object store."
    ),
    license="Apache-2.0 OR GPL-2.0-or-later",
    packages=["gitbind"],
    package_data={"": ["py.typed"]},
    python_requires=">=3.10",
    install_requires=[
        'typing_extensions >=4.0; python_version < "3.12"',
    ],
    extras_require={
        "test": tests_require,
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Operating System :: POSIX",
        "Topic :: Software Development :: Version Control",
    ],
)
