from setuptools import find_namespace_packages, setup


def read_requirements():
    with open("requirements.txt") as f:
        return [line for line in f.read().splitlines() if line and not line.startswith("#")]


setup(
    name="almost-fullscreen",
    version="1.0.0",
    description="Resizes new Wayfire windows to fill the work area minus a small padding",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
    ],
    python_requires=">=3.10",
    install_requires=read_requirements(),
    extras_require={
        "dev": [
            "pygobject-stubs",
        ],
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "almost-fullscreen=almost_fullscreen.main:main",
        ],
    },
    packages=find_namespace_packages(include=["almost_fullscreen*"]),
    package_data={"almost_fullscreen": ["config.json"]},
    include_package_data=True,
)
