"""
Setup script for ollama-panel package.
"""

from setuptools import setup, find_packages

setup(
    name="ollama-panel",
    version="1.0.0",
    description="Browser chat panel for local Ollama models",
    author="",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["main"],
    include_package_data=True,
    package_data={
        "panel": ["templates/*.html", "static/*"],
    },
    install_requires=[
        "flask>=3.0.0",
        "openai>=1.0.0",
        "requests>=2.31.0",
        "jinja2>=3.1.0",
        "pygments>=2.15.0",
        "markdown>=3.4.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": ["pytest>=7.0", "httpx>=0.23.0", "playwright>=1.40"],
    },
    python_requires=">=3.8",
    entry_points={
        "console_scripts": [
            "ollama-panel=main:main",
        ],
    },
)
