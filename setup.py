"""
TeamTrack setup.py — Package configuration and CLI entry point.
"""

from setuptools import find_packages, setup

setup(
    name="teamtrack",
    version="1.0.0",
    description="TeamTrack — multi-tenant project and task tracker core",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    entry_points={
        "console_scripts": [
            "teamtrack=teamtrack.cli:main",
        ],
    },
    install_requires=[
        "sqlalchemy>=2.0",
        "pydantic>=2.5",
        "bcrypt>=4.1",
        "cryptography>=42.0",
        "pyyaml>=6.0",
        "httpx>=0.27",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
)
