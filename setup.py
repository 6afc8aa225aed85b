#!/usr/bin/env python3
"""
Setup script for engineer_store package
"""
from setuptools import setup, find_packages

setup(
    name="engineer-store",
    version="1.0.0",
    description="Concurrent CSV-backed engineer record store with validation and duplicate detection",
    author="Engineer Store Development Team",
    author_email="dev@engineerstore.system",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
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
            "engineer-store=engineer_store.cli:main",
        ],
    },
    include_package_data=True,
    package_data={
        "engineer_store": ["*.yaml", "*.yml"],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Database",
        "Topic :: Office/Business",
    ],
    keywords="csv engineer records concurrent reader writer lock validation",
)
