#!/usr/bin/env python3
"""
Setup script for ADFS Inspector.

Supports standard pip installs, including editable installs with
pip install -e .[test]
"""

from setuptools import setup, find_packages

setup(
    name="adfs-inspector",
    version="1.0.0",
    description="Format detection, map decoding and directory listing for Acorn ADFS disk images",
    license="MIT",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.5.0",
        "rich>=13.7.0",
        "numpy>=1.26.0",
    ],
    extras_require={
        "test": ["pytest>=7.4.0"],
    },
    entry_points={
        "console_scripts": [
            "adfs-inspect=adfs_inspector.main:main",
        ],
    },
)
