"""Setup script for Wealth Planner package."""

from setuptools import setup, find_packages

# Read long description from README
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="wealth-planner",
    version="0.1.0",
    author="IDA Team",
    author_email="analytics@intainft.com",
    description="Deterministic wealth projection, goal analysis and planning suggestions",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/intainft/wealth-planner",
    packages=find_packages(include=[
        "core", "core.*",
        "engine", "engine.*",
        "advice", "advice.*",
        "history", "history.*",
        "store", "store.*",
        "app", "app.*",
    ]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Financial and Insurance Industry",
        "Topic :: Office/Business :: Financial",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.24.0",
        "pandas>=2.0.0",
        "streamlit>=1.29.0",
        "plotly>=5.14.0",
        "python-dateutil>=2.8.2",
        "pydantic>=2.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.3.0",
            "pytest-cov>=4.0.0",
            "black>=23.3.0",
            "flake8>=6.0.0",
            "mypy>=1.3.0",
            "isort>=5.12.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "wealth-planner=app.streamlit_app:cli",
        ],
    },
    include_package_data=True,
    zip_safe=False,
)
