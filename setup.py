#!/usr/bin/env python

from setuptools import find_packages, setup

with open("README.rst", "r") as f:
    long_description = f.read()

setup(
    name="shaperfont",
    use_scm_version={
        "write_to": "Lib/shaperfont/_version.py",
        "fallback_version": "0.1.0",
    },
    description=(
        "Compile OpenType feature files into minimal, optionally variable, "
        "fonts for shaping."
    ),
    long_description=long_description,
    long_description_content_type="text/x-rst",
    package_dir={"": "Lib"},
    packages=find_packages("Lib"),
    include_package_data=True,
    license="MIT",
    setup_requires=["setuptools_scm"],
    install_requires=[
        "fonttools>=4.47.0",
    ],
    extras_require={
        "test": ["pytest>=2.8"],
    },
    entry_points={
        "console_scripts": ["shaperfont = shaperfont.__main__:main"],
    },
    python_requires=">=3.8",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Environment :: Other Environment",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Natural Language :: English",
        "Operating System :: OS Independent",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Graphics",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
)
