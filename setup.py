from setuptools import setup, find_packages

setup(
    name="rund",
    version="0.3.0",
    packages=find_packages(include=["rund", "rund.*"]),
    description="Run CLI apps in a detached, positioned terminal popup.",
    python_requires=">=3.10",
    install_requires=[
        "pyperclip>=1.8",
        "rich>=13.0",
        "tomli>=2.0; python_version < '3.11'",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-mock>=3.10",
        ],
    },
    entry_points={
        "console_scripts": [
            "rund=rund.cli:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
        "Environment :: Console",
    ],
)
