"""Setup script for the Indicator QA package."""

from setuptools import setup, find_packages
import os

# Read the requirements file
def read_requirements():
    """Read requirements from requirements.txt file."""
    req_file = os.path.join(os.path.dirname(__file__), 'requirements.txt')
    if os.path.exists(req_file):
        with open(req_file, 'r', encoding='utf-8') as f:
            return [line.strip() for line in f if line.strip() and not line.startswith('#')]
    return []

# Read the README for long description
def read_readme():
    """Read README for long description."""
    readme_file = os.path.join(os.path.dirname(__file__), 'DESIGN.md')
    if os.path.exists(readme_file):
        with open(readme_file, 'r', encoding='utf-8') as f:
            return f.read()
    return "Quality assurance engine for statistical indicator datasets"

setup(
    name="indicator-qa",
    version="1.0.0",
    author="Indicator QA Project",
    description="Quality assurance engine for statistical indicator datasets",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.8",
    install_requires=read_requirements(),
    extras_require={
        "dev": [
            "pytest>=6.0",
            "pytest-cov>=2.0",
            "hypothesis>=6.0",
            "black>=21.0",
            "flake8>=3.8",
        ]
    },
    entry_points={
        "console_scripts": [
            "indicator-qa=indicator_qa.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Information Analysis",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
    keywords="data quality statistics indicators qa outliers timeline",
)
