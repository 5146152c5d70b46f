from setuptools import setup
from os import path
from io import open
import re

here = path.abspath(path.dirname(__file__))

with open(path.join(here, "README.md"), encoding="utf-8") as f:
    long_description = f.read()

# read without importing, the package needs its dependencies to import
with open(path.join(here, "lumigo_lambda", "version.py"), encoding="utf-8") as f:
    __version__ = re.search(r'__version__ = "([^"]+)"', f.read()).group(1)

setup(
    name="lumigo_lambda",
    version=__version__,
    description="Lumigo span export for OpenTelemetry traced AWS Lambda functions",
    long_description=long_description,
    long_description_content_type="text/markdown",
    keywords="lumigo aws lambda opentelemetry tracing",
    classifiers=[
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    packages=["lumigo_lambda"],
    python_requires=">=3.8, <4",
    install_requires=[
        "opentelemetry-api>=1.20.0",
        "opentelemetry-sdk>=1.20.0",
        "wrapt>=1.11.2",
        "ujson>=5.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "flake8>=3.7.9",
            "requests>=2.22.0",
        ]
    },
)
