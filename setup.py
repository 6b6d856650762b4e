from setuptools import setup, find_packages


setup(
    name="tarstream",
    version="0.1",
    packages=find_packages(include=["tarstream", "tarstream.*"]),
    description="A streaming reader and writer for tar archives with generation-guarded entry views.",
    author="vercingetorx",
    python_requires=">=3.8",
    install_requires=[],
)
