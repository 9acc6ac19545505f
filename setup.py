#!/usr/bin/env python3
"""Simple setup script for development."""

from setuptools import setup, find_packages

setup(
    name="adr-package-rotator",
    version="0.1.0",
    description="Rotate the deployment package behind Configuration Manager auto-deployment rules",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.10",
    install_requires=[
        "httpx>=0.26.0",
        "httpx-ntlm>=1.4.0",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
        "structlog>=24.1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "adr-rotate=adr_rotator.__main__:main",
        ],
    },
)
