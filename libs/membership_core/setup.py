from setuptools import setup, find_packages

setup(
    name="membership_core",
    version="0.1.0",
    description="Access gate, session events and review bucketing for the Academy workflow",
    packages=find_packages(),
    install_requires=[],
    python_requires=">=3.9",
)
