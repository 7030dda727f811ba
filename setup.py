# setup.py
from setuptools import setup, find_packages

setup(
    name="ream",
    version="0.1.0",
    description="A statically typed Lisp with Hindley-Milner inference",
    packages=find_packages(include=["ream", "ream.*", "ream_lsp", "ream_lsp.*"]),
    python_requires=">=3.11",
    install_requires=[
        "pygls>=1.1,<2",
        "lsprotocol",
    ],
    extras_require={
        "test": ["pytest", "hypothesis"],
    },
    entry_points={
        "console_scripts": [
            "ream=ream.cli:main",
            "ream-ls=ream_lsp.server:main",
        ],
    },
    zip_safe=False,
)
