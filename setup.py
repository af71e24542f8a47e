from setuptools import find_packages, setup


setup(
    name="entity-usage-propagation",
    version="0.1.0",
    description="Entity usage tracking and change propagation for client wikis",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.0.0",
        "confluent-kafka>=2.0.0",
        "psycopg2-binary>=2.9.0",
        "prometheus-client>=0.17.0",
    ],
    extras_require={
        "test": ["pytest>=7.0.0"],
    },
)
