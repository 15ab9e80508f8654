"""
Setup script for learner-analytics.

Learner analytics engine for adaptive practice platforms. It serves
three roles:

1. Tracking - question attempts, study sessions, concept mastery
2. Diagnostics - chapter tests classified into strengths, weaknesses and gaps
3. Reporting - learning paths, remediation recommendations, progress reports

The 'learner-analytics' command is the CLI entry point; the HTTP API is
served by main.py (uvicorn).
"""

from setuptools import find_packages, setup

setup(
    name="learner-analytics",
    version="1.0.0",
    description="Learner progress tracking, diagnostics and progress reports",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="Learner Analytics",
    packages=find_packages(include=["learner_analytics", "learner_analytics.*"]),
    py_modules=["config"],
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Database
        "sqlalchemy>=2.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # HTTP
        "httpx>=0.25.0",
        "fastapi>=0.100.0",
        "uvicorn>=0.23.0",
        # Generated JSON cleanup
        "json-repair>=0.25.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
        "postgres": [
            "psycopg2-binary>=2.9.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "learner-analytics=learner_analytics.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
    ],
    keywords="learning analytics mastery diagnostics education",
)
