from setuptools import setup, find_packages

setup(
    name="oracle-node-simulator",
    version="0.1.0",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "aiohttp>=3.8.0",
        "prometheus-client>=0.17.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.18.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "oracle-node=oracle_node.server:main",
        ],
    },
    python_requires=">=3.10",
)
