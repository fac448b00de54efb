"""
Setup script for the HJ Override package.
"""

from setuptools import find_packages, setup

if __name__ == "__main__":
    setup(
        name="hj-override",
        version="0.1.0",
        packages=find_packages(include=["hj_override", "hj_override.*"]),
        python_requires=">=3.9",
        install_requires=[
            "numpy>=1.21.0",
            "scipy>=1.7.0",
            "matplotlib>=3.4.0",
            "pyyaml>=6.0",
        ],
        extras_require={
            "dev": [
                "pytest>=7.0",
                "pytest-cov>=4.0",
                "black>=23.0",
                "isort>=5.0",
                "mypy>=1.0",
            ],
        },
        author="HJ Override Team",
        description="Hamilton-Jacobi reachability safety override for mobile robots",
        long_description=open("README.md").read(),  # noqa: SIM115
        long_description_content_type="text/markdown",
        license="MIT",
        classifiers=[
            "Development Status :: 4 - Beta",
            "Intended Audience :: Science/Research",
            "License :: OSI Approved :: MIT License",
            "Programming Language :: Python :: 3",
            "Topic :: Scientific/Engineering",
        ],
    )
