from setuptools import setup, find_packages

setup(
    name="skillgauge-backend",
    version="0.1.0",
    packages=find_packages(),
    package_data={
        "skillgauge": ["alembic/*.py", "alembic/script.py.mako", "alembic/versions/*.py"],
    },
    install_requires=[
        "fastapi>=0.110.0",
        "uvicorn>=0.27.0",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
        "sqlalchemy>=2.0.0",
        "alembic>=1.13.0",
        "python-dotenv>=1.0.0",
        "PyJWT>=2.8.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "httpx>=0.26.0",
        ],
    },
    python_requires=">=3.9",
)
