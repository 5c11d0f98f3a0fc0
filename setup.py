from setuptools import setup, find_packages

setup(
    name="harpoon",
    version="1.1.0",
    description="Pull, save, load and push container images through docker, podman or nerdctl",
    author="",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.8",
    install_requires=[
        "pyyaml>=6.0.1",
        "click>=8.1.7",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "hpn=harpoon.cli:main",
        ],
    },
    include_package_data=True,
)
