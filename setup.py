"""The setup script."""

from setuptools import setup, find_packages

setup(
    name="pulsesim",
    version="0.1.0",
    description="Simulation of periodic pulsar signals in integrated time samples.",
    packages=find_packages(include=["pulsesim", "pulsesim.*"]),
    python_requires=">=3.9",
    install_requires=[
        "astropy >= 6.1",
        "numpy >= 1.26",
        "scipy >= 1.13",
        "dask[array] >= 2024.5",
    ],
    extras_require={
        "test": ["pytest >= 8.2.1", "cloudpickle >= 3.0.0"],
    },
)
