"""
python -m build
twine upload dist/*
"""

from setuptools import setup, find_packages


def sacrud_setup():
    with open("requirements.txt", "rt") as fp:
        install_requires = fp.read().strip().split("\n")

    version = "0.3.1"

    setup(
        name="sacrud",
        packages=find_packages(exclude=["tests", "tests.*"]),
        version=version,
        license="MIT",
        description="sacrud : SqlAlchemy CRUD endpoints for Flask and FastAPI",
        long_description=open("README.rst").read(),
        keywords=["SqlAlchemy", "Flask", "FastAPI", "REST", "CRUD"],
        python_requires=">=3.8, <4",
        install_requires=install_requires,
        classifiers=[
            "Development Status :: 3 - Alpha",
            "License :: OSI Approved :: MIT License",
            "Intended Audience :: Developers",
            "Framework :: Flask",
            "Framework :: FastAPI",
            "Topic :: Software Development :: Libraries",
            "Environment :: Web Environment",
            "Programming Language :: Python :: 3.12",
            "Programming Language :: Python :: 3.11",
            "Programming Language :: Python :: 3.10",
            "Programming Language :: Python :: 3.9",
            "Programming Language :: Python :: 3.8",
        ],
        extras_require={"test": ["pytest>=7.0", "httpx>=0.24", "aiosqlite>=0.19"]},
    )


sacrud_setup()  # pragma: no cover
