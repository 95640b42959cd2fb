"""Setup script for the planetary-climate package."""

from setuptools import setup, find_packages

setup(
    name="planetary-climate",
    version="0.1.0",
    description="A cellular planetary atmosphere and climate simulation engine",
    packages=find_packages(include=['src', 'src.*']),
    package_data={
        "": ["*.md", "*.txt"],
    },
    include_package_data=True,
    install_requires=[
        "numpy",
        "scipy",
        "xarray",
    ],
    extras_require={
        "examples": ["matplotlib"],
        "test": ["pytest"],
    },
    classifiers=[
        "Development Status :: 2 - Pre-Alpha",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "Programming Language :: Python :: 3",
        "Topic :: Scientific/Engineering :: Atmospheric Science",
    ],
    python_requires=">=3.8",
)
