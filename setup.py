from setuptools import setup, find_packages

setup(
    name="alicelang",
    version="0.1.0",
    description="Interpreter for Alice, a small stack-based, statically typed, concatenative language",
    packages=find_packages(include=["alicelang", "alicelang.*"]),
    py_modules=["alice"],
    package_data={"alicelang": ["grammar.lark"]},
    install_requires=[
        "lark>=1.1",
        "pydantic>=2.0",
        "loguru>=0.7",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
    entry_points={
        "console_scripts": [
            "alice=alice:main",
        ],
    },
    python_requires=">=3.10",
)
