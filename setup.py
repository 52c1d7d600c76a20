# setup.py
from setuptools import setup, find_namespace_packages

setup(
    name="zinc",
    version="0.3.0",
    description="Import foreign header records and macros into Zeta Lisp",
    packages=find_namespace_packages(include=["zinc", "zinc.*", "zinc_lsp", "zinc_lsp.*"]),
    python_requires=">=3.10",
    install_requires=[
        "pygls>=1.0,<2",
        "lsprotocol",
    ],
    extras_require={
        "test": ["pytest", "hypothesis"],
    },
    entry_points={
        "console_scripts": [
            "zinc=zinc.__main__:main",
            "zinc-ls=zinc_lsp.server:ls.start_io",
        ],
    },
    zip_safe=False,
)
