from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="queue-scaler",
    version="0.1.0",
    author="StepScale.io",
    author_email="info@stepscale.io",
    description="Queue-depth autoscaler for Kubernetes deployments and ECS services with per-direction cooldowns",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
    install_requires=[
        "boto3>=1.26.0",
        "botocore>=1.29.0",
        "retry>=0.9.2",
        "kubernetes>=26.1.0",
        "redis>=4.5.0",
        "urllib3>=1.26.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "queue-scaler=queuescaler.main:main",
        ],
    },
)
