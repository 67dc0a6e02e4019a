"""
Setup configuration for altt4, the text template transformation engine.

This setup.py declares the package, its runtime dependencies and the
altt4-generate command line entry point.
"""

from setuptools import setup, find_packages
import os


# Read version from package
def get_version():
    """Extract version from package __init__.py"""
    version_file = os.path.join(os.path.dirname(__file__), "altt4", "__init__.py")
    with open(version_file, "r") as f:
        for line in f:
            if line.startswith("__version__"):
                return line.split("=")[1].strip().strip("\"'")
    return "0.1.0"


# Read long description from README
def get_long_description():
    """Read long description from README.md if available"""
    readme_path = os.path.join(os.path.dirname(__file__), "README.md")
    if os.path.exists(readme_path):
        with open(readme_path, "r", encoding="utf-8") as f:
            return f.read()
    return "altt4: text templates with embedded Python, rendered through generated programs"


setup(
    name="altt4",
    version=get_version(),
    author="altt4 Team",
    author_email="altt4@example.com",
    description="Text template transformation with embedded Python code",
    long_description=get_long_description(),
    long_description_content_type="text/markdown",
    url="https://github.com/altt4/altt4",
    packages=find_packages(exclude=["tests*", "examples*", "docs*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Code Generators",
        "Topic :: Text Processing",
    ],
    python_requires=">=3.8",
    install_requires=[
        "pyyaml>=5.4",
    ],
    extras_require={
        "dev": [
            "pytest>=6.0",
            "pytest-cov>=2.0",
            "black>=22.0",
            "isort>=5.0",
            "mypy>=0.900",
            "flake8>=4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "altt4-generate=altt4.cli:main",
        ],
    },
    include_package_data=True,
    zip_safe=False,
    keywords="template, t4, code-generation, text-templating",
)
