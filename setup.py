from setuptools import setup, find_packages

setup(
    name="team-quality-forecaster",
    version="0.1.0",
    description="Bayesian hierarchical team quality estimation and game forecasting",
    author="Ben Rosen",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy>=1.22.4",
        "pandas>=1.5.3",
        "scipy>=1.10.0",
        "pymc>=5.16",
        "arviz>=0.17,<1.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    python_requires=">=3.10",
    entry_points={
        "console_scripts": [
            "team-forecast=src.main:main",
        ],
    },
)
