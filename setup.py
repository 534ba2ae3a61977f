"""Setup configuration for the agency framework."""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="agency-pipes",
    version="0.1.0",
    author="Agency Team",
    author_email="hello@agency.dev",
    description="Composable pipelines over generative AI models",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/agency-dev/agency",
    packages=find_packages(exclude=["tests", "tests.*", "examples", "examples.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.0",
    ],
    extras_require={
        "openai": ["openai>=1.0.0", "python-dotenv>=1.0.0"],
        "full": ["openai>=1.0.0", "python-dotenv>=1.0.0"],
        "dev": [
            "openai>=1.0.0",
            "python-dotenv>=1.0.0",
            "pytest>=6.0",
            "pytest-asyncio>=0.21.0",
            "black",
            "flake8",
            "mypy",
        ],
    },
)
