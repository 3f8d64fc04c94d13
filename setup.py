"""Packaging for Daily Agenda."""

from pathlib import Path

from setuptools import find_packages, setup

HERE = Path(__file__).parent


def read_requirements():
    """Split requirements.txt into runtime and test requirements."""
    runtime, test = [], []
    requirements_file = HERE / "requirements.txt"
    if not requirements_file.exists():
        return runtime, test

    for line in requirements_file.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        (test if line.startswith("pytest") else runtime).append(line)
    return runtime, test


install_requires, test_requires = read_requirements()
readme = HERE / "README.md"

setup(
    name="dailyagenda",
    version="1.0.0",
    description="Rolling multi-day agenda from ICS calendar feeds with recurrence expansion",
    long_description=readme.read_text(encoding="utf-8") if readme.exists() else "",
    long_description_content_type="text/markdown",
    author="Daily Agenda Team",
    author_email="support@dailyagenda.local",
    packages=find_packages(exclude=["tests*"]),
    install_requires=install_requires,
    extras_require={
        "test": test_requires,
        "dev": [*test_requires, "black>=23.0.0", "isort>=5.12.0", "mypy>=1.0.0"],
    },
    python_requires=">=3.9",
    entry_points={
        "console_scripts": [
            "dailyagenda=dailyagenda.__main__:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Framework :: AsyncIO",
        "Programming Language :: Python :: 3",
        "Topic :: Office/Business :: Scheduling",
    ],
    keywords="calendar ics icalendar rrule agenda",
    zip_safe=False,
)
