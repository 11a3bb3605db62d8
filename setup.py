from setuptools import setup, find_packages

setup(
    name="wrp_decoder",
    version="0.1.0",
    description="Decoder for WRP world files and forest shape extraction",
    packages=find_packages(include=['wrp_decoder', 'wrp_decoder.*']),
    install_requires=[
        "numpy>=1.20",
        "construct>=2.10",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    python_requires=">=3.8",
    entry_points={
        "console_scripts": [
            "wrp-decoder=wrp_decoder.main:main",
        ],
    },
)
