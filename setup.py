from setuptools import setup, find_packages

setup(
    name="fractalc",
    version="0.1.0",
    description="fractalc: compiles complex iteration formulas into WebGL escape-time fractal shaders",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    author="fractalc Project",
    python_requires=">=3.9",
    packages=find_packages(),
    install_requires=[
        "numpy",
        "imageio",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "fractalc=fractalc.cli:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Topic :: Software Development :: Compilers",
        "Topic :: Multimedia :: Graphics",
    ],
)
