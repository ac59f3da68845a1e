"""
Setup script for fellingdate package
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read the README file for long description
readme_file = Path(__file__).parent / "README.md"
if readme_file.exists():
    long_description = readme_file.read_text(encoding='utf-8')
else:
    long_description = "Sapwood-based felling date estimation for dendrochronology"

setup(
    name="fellingdate",
    version="0.1.0",
    description="Felling date ranges, combined felling dates and summed "
                "probability densities from sapwood ring counts",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Felling Date Project",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "numpy>=1.20",
        "pandas>=1.3",
        "matplotlib>=3.4",
        "scipy>=1.7",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "fellingdate=fellingdate.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
    keywords="dendrochronology sapwood felling-date tree-rings",
)
