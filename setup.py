"""
Setup script for resourcestore.
"""
from setuptools import setup, find_packages

setup(
    name="resourcestore",
    version="0.1.0",
    description="Kubernetes/S3 persistence layer for agent proxy resources",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
        "click>=8.1.0",
        "kubernetes>=28.1.0",
        "urllib3>=1.26.0",
        "boto3>=1.28.0",
        "botocore>=1.31.0",
        "cryptography>=41.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "resourcestore=resourcestore.cli:main",
        ],
    },
    python_requires=">=3.11",
)
