from setuptools import setup, find_packages

setup(
    name="qtzcodec",
    version="0.1.0",
    description="Lossy compression of mesh vertex, normal and texture-coordinate arrays",
    packages=find_packages(include=["qtzcodec", "qtzcodec.*"]),
    python_requires=">=3.11",
    install_requires=[
        "numpy",
        "torch",
        "zstandard",
        "hydra-core",
        "omegaconf",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "qtzcodec=qtzcodec.__main__:main",
        ],
    },
)
