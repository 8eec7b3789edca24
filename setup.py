from setuptools import setup, find_namespace_packages

setup(
    name="phantom_driver",
    version="0.1.0",
    description="Lifecycle management for PhantomJS WebDriver server processes",
    author="Antigravity",
    packages=find_namespace_packages(include=["phantom_driver", "phantom_driver.*"]),
    install_requires=[
        "pydantic>=2.0",
        "httpx>=0.28.1",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "fastapi>=0.100.0",
            "uvicorn>=0.20.0",
        ],
    },
    python_requires=">=3.8",
)
