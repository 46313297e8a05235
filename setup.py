from pathlib import Path
from setuptools import setup, find_packages

def parse_requirements(requirements):
    with open(Path(__file__).parent / requirements) as f:
        return [l.strip('\n') for l in f if l.strip('\n') and not l.startswith('#')]

requirements = parse_requirements("requirements.txt")

setup(
    name='portal_backend',
    version='0.0.1',
    install_requires=requirements,
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "portal=portal_backend.cli.cli:cli",
        ],
    }
)
