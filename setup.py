#!/usr/bin/env python3
"""
Setup script for pyGenebuild
"""

from setuptools import setup, find_packages

setup(
    name="pygenebuild",
    version="0.1.0",
    description="Processed pseudogene detection and shared EST discrimination for genome annotation",
    packages=find_packages(include=["genebuild", "genebuild.*"]),
    install_requires=[
        "psycopg2-binary>=2.9.3",
        "pyyaml>=6.0",
        "biopython>=1.80",
        "numpy>=1.22.0",
        "pandas>=1.4.0",
        "requests>=2.27.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Bio-Informatics",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
    ],
    python_requires=">=3.8",
)
