"""
Setup configuration for cloudenvoy package.
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="cloudenvoy",
    version="0.1.0",
    author="cloudenvoy",
    description="Publish to Google Cloud Pub/Sub and receive messages through authenticated push subscriptions",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
    ],
    python_requires=">=3.11",
    install_requires=[
        "pydantic>=2.5.0",
        "google-cloud-pubsub>=2.18.0",
        "google-api-core>=2.11.0",
        "grpcio>=1.51.0",  # Insecure channel to the Pub/Sub emulator
        "PyJWT>=2.8.0",  # Verification tokens on the webhook URL
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
    },
)
