"""
Setup script for the Andor SDK binding generator.

cffi and setuptools are runtime dependencies: the probe extension is
compiled when the generator runs, against the SDK found on that machine.
"""
from setuptools import find_packages, setup

setup(
    name="atgen",
    version="1.0.0",
    description="Generate Julia bindings for the Andor SDK3 by probing its headers",
    license="MIT",
    packages=find_packages(include=["atgen", "atgen.*"]),
    python_requires=">=3.10",
    install_requires=[
        "cffi>=1.15",
        "setuptools",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
    entry_points={
        "console_scripts": ["atgen=atgen.cli:main"],
    },
)
