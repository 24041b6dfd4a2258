#!/usr/bin/python3
# Setup file for gitvfs
# Copyright (C) 2026 The gitvfs authors
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later

from setuptools import setup

setup(
    name="gitvfs",
    version="0.1.0",
    description="Virtual git filesystems and smart HTTP serving on top of Dulwich",
    license="Apache-2.0 OR GPL-2.0-or-later",
    python_requires=">=3.10",
    packages=["gitvfs"],
    package_data={"": ["py.typed"]},
    install_requires=["dulwich>=0.25.0"],
    extras_require={
        "dev": ["ruff==0.14.1", "mypy==1.18.2"],
    },
    entry_points={"console_scripts": ["gitvfs=gitvfs.cli:_main"]},
    classifiers=[
        "Development Status :: 3 - Alpha",
        "License :: OSI Approved :: Apache Software License",
        "License :: OSI Approved :: GNU General Public License v2 or later (GPLv2+)",
        "Programming Language :: Python :: 3",
        "Operating System :: POSIX",
        "Topic :: Software Development :: Version Control",
    ],
)
