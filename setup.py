#!/usr/bin/env python
# coding=utf-8

# Template:
# https://github.com/rexzhang/pypi-package-project-template/blob/master/setup.py


# To use a consistent encoding
from codecs import open
from pathlib import Path

# Always prefer setuptools over distutils
from setuptools import find_packages, setup

import asgi_fsdav as module

root_path = Path(__file__).parent
requirements_path = root_path.joinpath("requirements")

# Get the long description from the README file
with open(root_path.joinpath("README.md").as_posix(), encoding="utf-8") as f:
    long_description = f.read()


# Get install_requires from requirements.txt
def _read_requires_from_requirements_txt(
    base_path: Path, filename: str, ignore_base: bool = False
) -> list[str]:
    _requires = []
    with open(base_path.joinpath(filename).as_posix(), encoding="utf-8") as req_f:
        lines = req_f.readlines()
        for line in lines:
            if line == "\n" or line == "" or line[0] == "#":
                continue

            words = line.rstrip("\n").split(" ")
            if words[0] == "-r":
                if ignore_base and words[1] == "base.txt":
                    continue

                else:
                    _requires.extend(
                        _read_requires_from_requirements_txt(
                            base_path=base_path, filename=words[1]
                        )
                    )

            else:
                _requires.append(words[0])

    return _requires


install_requires = _read_requires_from_requirements_txt(
    base_path=requirements_path, filename="base.txt"
)
extras_require_dev = sorted(
    set(
        _read_requires_from_requirements_txt(
            base_path=requirements_path, filename="dev.txt", ignore_base=True
        )
    )
)

setup(
    name="ASGIFSDAV",
    version=module.__version__,
    description=module.__description__,
    long_description=long_description,
    long_description_content_type="text/markdown",
    url=module.__project_url__,
    author=module.__author__,
    author_email=module.__author_email__,
    classifiers=[
        "Development Status :: 4 - Beta",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    ],
    keywords="asgi webdav asyncio filesystem",
    packages=find_packages(exclude=["contrib", "docs", "tests", "examples"]),
    python_requires=">=3.10",
    install_requires=install_requires,
    extras_require={
        "test": extras_require_dev,
    },
    entry_points={
        "console_scripts": [
            "asgi-fsdav=asgi_fsdav.cli:main",
        ],
    },
)
