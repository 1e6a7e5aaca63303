#!/usr/bin/env python3
"""Setup script for nexus-service."""

from setuptools import setup, find_packages
from pathlib import Path

# Read the long description from README
README = Path("README.md")
long_description = README.read_text() if README.exists() else ""

# Read version from package
version = "1.0.0"

setup(
    name="nexus-service",
    version=version,
    description="nexus-service - Install and control a Nexus network node under systemd",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "nexus-service=nexus_service.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: System :: Systems Administration",
        "Environment :: Console",
    ],
    python_requires=">=3.10",
)
