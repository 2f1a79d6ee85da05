from setuptools import setup, find_packages


setup(
    name="engagesdk",
    version="0.1.0",
    description="Durable analytics event queue with bulk upload and cached Engage decisions",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "pydantic>=2.6",
        "pydantic-settings>=2.2",
        "typer>=0.12",
        "apscheduler>=3.10,<4",
        "requests>=2.31",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "engagesdk=engagesdk.cli:app",
        ]
    },
    python_requires=">=3.10",
)
