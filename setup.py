from pathlib import Path

from setuptools import find_packages, setup

# Load packages from requirements.txt
BASE_DIR = Path(__file__).parent
with open(Path(BASE_DIR, "requirements.txt")) as file:
    required_packages = [
        ln.strip() for ln in file.readlines() if ln.strip() and not ln.startswith("#")
    ]

# Define our package
setup(
    name="ShannonLearn",
    version="0.1.0",
    description="Lesson session controller: paged lessons, retry-until-correct quizzes, "
    "usage limits, read-aloud and next-lesson recommendations",
    python_requires=">=3.10",
    packages=find_packages(include=["shannon_learn", "shannon_learn.*"]),
    package_data={"shannon_learn": ["schemas/*.json"]},
    install_requires=required_packages,
    extras_require={
        "test": ["pytest>=7.0"],
        "dev": ["pre-commit==2.19.0", "pytest>=7.0"],
    },
)
