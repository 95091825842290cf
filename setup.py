"""
Setup script for netem-trace.

This allows the package to be installed in development mode:
    pip install -e .

With the test dependencies:
    pip install -e ".[dev]"
"""

from setuptools import setup, find_packages

setup(
    name="netem-trace",
    version="0.1.0",
    description="Network emulation trace generation: bandwidth, delay, loss and duplication",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.22",
        "pyyaml>=6.0",
    ],
    extras_require={
        "dev": [
            "pytest",
        ],
    },
)
