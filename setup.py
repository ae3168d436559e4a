from setuptools import setup, find_packages

setup(
    name="onpage_seo_advisor",
    version="1.0.0",
    packages=find_packages(where=".", exclude=["tests", "tests.*"]),
    package_dir={"": "."},
    install_requires=[
        "fastapi>=0.93",
        "uvicorn",
        "python-dotenv",
        "httpx",
        "parsel",
        "pydantic>=2",
        "flask"
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio"
        ]
    }
)
