"""Setup configuration for connect-analytics project."""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="connect-analytics",
    version="0.1.0",
    author="Data Engineering",
    author_email="data-engineering@example.com",
    description="Cross-account Amazon Connect analytics automation for Lake Formation resource links",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/yourusername/connect-analytics",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.9",
    install_requires=[
        "boto3>=1.34.0",
        "pandas>=2.1.0",
        "python-dotenv>=1.0.0",
        "pydantic>=2.5.0",
        "python-json-logger>=2.0.7",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
            "black>=23.12.0",
            "flake8>=6.1.0",
            "mypy>=1.7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "connect-analytics=connect_analytics.cli:main",
        ],
    },
)
