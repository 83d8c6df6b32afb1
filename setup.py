from setuptools import setup, find_packages

setup(
    name="vnrecord",
    version="0.1.0",
    description="Record system audio sessions that end with a window screenshot",
    author="",
    python_requires=">=3.8",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy>=1.21.0",
        "rich>=12.5.0",
        "pyyaml>=6.0.0",
        "mss>=9.0.0",
        "Pillow>=9.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "vnrecord=vnrecord.main:main",
        ],
    },
)
