from os import path

from setuptools import setup

this_dir = path.abspath(path.dirname(__file__))
long_description = ""
if path.exists(path.join(this_dir, "README.md")):
    with open(path.join(this_dir, "README.md")) as f:
        long_description = f.read()

setup(
    name="FastUOW",
    description="FastUOW - UnitOfWork pattern for SQLAlchemy async sessions",
    long_description=long_description,
    long_description_content_type="text/markdown",
    version="0.1",
    license="MIT",
    packages=["fastuow", "fastuow.test", "fastuow.core"],
    package_data={
        "fastuow": ["py.typed"],
        "fastuow.core": ["py.typed"],
        "fastuow.test": ["py.typed"],
    },
    keywords=["fastuow", "unit of work", "sqlalchemy", "fastapi"],
    python_requires=">=3.9",
    install_requires=[
        "sqlalchemy[asyncio]>=2.0",
        "aiosqlite",
        "uvicorn",
        "fastapi",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "httpx",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Database",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.9",
    ],
)
