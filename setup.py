from setuptools import setup, find_packages
from pathlib import Path

setup(
    name="vidnote",
    version=Path("./vidnote/VERSION").read_text().strip(),
    description="Annotation state and interaction engine for video timelines",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"vidnote": ["VERSION"]},
    python_requires=">=3.8",
    install_requires=[
        "easydict",
        "fastapi",
        "pydantic>=2",
        "uvicorn",
        "httpx",
    ],
    extras_require={
        "test": ["pytest", "httpx"],
    },
    entry_points={
        "console_scripts": ["vidnote=vidnote.cli:main"],
    },
)
