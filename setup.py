# setup.py
from setuptools import setup, find_packages


def parse_reqs(fname="requirements.txt"):
    with open(fname) as f:
        # strip comments and empty lines
        return [l.strip() for l in f if l.strip() and not l.startswith("#")]


setup(
    name="regionstats",
    version="0.1.0",
    package_dir={"regionstats": "regionstats"},
    packages=find_packages(include=["regionstats", "regionstats.*"]),
    install_requires=parse_reqs(),
    extras_require={"test": ["pytest", "numpy"]},
    include_package_data=True,
    package_data={"regionstats": ["resources/*.json"]},
    python_requires=">=3.10",
    entry_points={"console_scripts": ["regionstats=regionstats.core.cli:cli"]},
)
