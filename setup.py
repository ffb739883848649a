from setuptools import setup, find_packages  # ignore: type

setup(
    name="elasdx",
    version="1.0.0",
    description="An Elasticsearch index template updating, reindexing and cleanup tool",
    packages=find_packages(exclude=("tests", "tests.*")),
    install_requires=["requests", "pyyaml", "Click", "cerberus", "pydantic"],
    extras_require={
        "test": ["pytest", "requests-mock", "pytest-mock"],
    },
    entry_points={
        "console_scripts": [
            "elasdx = elasdx.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Build Tools",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "License :: OSI Approved :: Apache Software License",
    ],
)
