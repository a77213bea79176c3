from setuptools import setup, find_packages

setup(
    name="gnuplotpipe",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    install_requires=[
        "pydantic>=2.0,<=2.11.3",
        "numpy>=1.26.4"
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "gnuplotpipe=gnuplotpipe.cli:main",
        ],
    },
)
