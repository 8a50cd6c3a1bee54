"""
Setup script for anatomy-quiz-engine.

The quiz assessment engine of the anatomy learning platform. It serves
three roles:

1. Quiz delivery - Redacted, shuffled quiz views for learners
2. Grading - Scoring submissions and recording attempts
3. Statistics - Running averages per quiz and per learner

The 'anatomy-quiz' command manages quizzes from the terminal; the REST API
is started with 'python main.py'.
"""

from setuptools import find_packages, setup

setup(
    name="anatomy-quiz-engine",
    version="1.0.0",
    description="Quiz presentation, grading and statistics for the anatomy learning platform",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="Anatomy Platform",
    packages=find_packages(include=["quiz_engine", "quiz_engine.*"]),
    py_modules=["config", "main"],
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Database
        "sqlalchemy>=2.0.0",
        "psycopg2-binary>=2.9.0",
        # Config & Validation
        "pydantic>=2.5.0",
        "pydantic-settings>=2.0.0",
        # API
        "fastapi>=0.100.0",
        "uvicorn>=0.23.0",
        # HTTP
        "httpx>=0.25.0",
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
    },
    entry_points={
        "console_scripts": [
            "anatomy-quiz=quiz_engine.cli.main:run",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Framework :: FastAPI",
        "Intended Audience :: Education",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="anatomy quiz assessment grading education",
)
