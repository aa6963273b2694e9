from setuptools import find_packages
from setuptools import setup

setup(
    name="evmhd",
    version="0.1.0",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.9",
    install_requires=[
        "ecdsa",
        "mnemonic",
        "pycryptodome",
    ],
    extras_require={
        "dev": [],
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["evmhd = evmhd.__main__:main"],
    },
)
