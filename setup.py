#!/usr/bin/env python3

from setuptools import find_namespace_packages, setup


def get_version():
    with open("debian/changelog", "r", encoding="utf-8") as f:
        return f.readline().split()[1][1:-1]


setup(
    name="plc-ditto-bridge",
    version=get_version(),
    description="Polls PLC data points and forwards their values to Eclipse Ditto digital twins",
    license="MIT",
    python_requires=">=3.9",
    packages=find_namespace_packages(include=["twin.*"]),
    install_requires=[
        "aiohttp>=3.8",
        "httpx>=0.24",
        "pydantic>=2.0",
        "python-snap7>=3.2,<4",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "plc-ditto-bridge = twin.plc_ditto.cli.main:main",
        ],
    },
)
