"""
kolmogorov - B-spline Kolmogorov-Arnold Networks

A PyTorch implementation based on https://arxiv.org/abs/2404.19756
"""

from setuptools import setup, find_packages

setup(
    name="kolmogorov",
    version="1.0.0",
    author="KAN Implementation",
    description="B-spline Kolmogorov-Arnold Network layers with adaptive grids - PyTorch implementation",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "torch>=1.13.0",
        "numpy>=1.20.0",
        "matplotlib>=3.4.0",
    ],
    extras_require={
        "dev": ["pytest", "black", "isort"],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
    ],
    keywords="machine-learning, neural-networks, kolmogorov-arnold, splines",
)
