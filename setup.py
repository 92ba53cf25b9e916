from setuptools import find_packages, setup

setup(
    name="xrootd-explorer",
    version="0.1.0",
    description="Sandboxed, cached read-only queries over a remote XRootD data area",
    author="Daniel T Sasser II",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "paramiko>=3.0.0",
    ],
    entry_points={
        "console_scripts": [
            "xrootd-explorer=xrootd_explorer.__main__:main",
        ],
    },
    python_requires=">=3.10",
    extras_require={
        "dev": [
            "pytest",
            "build",
            "twine",
        ],
    },
)
