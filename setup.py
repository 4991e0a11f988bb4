"""Package setup for gallery_cache."""

from setuptools import setup, find_packages

setup(
    name="gallery-cache",
    version="1.0.0",
    description="Cached discovery and signed access for a remote image gallery",
    packages=find_packages(include=["gallery_cache", "gallery_cache.*"]),
    python_requires=">=3.10",
    install_requires=[
        "requests>=2.31.0",
        "beautifulsoup4>=4.12.0",
        "lxml>=5.0.0",
        "urllib3>=2.0.0",
        "redis>=5.0.0",
    ],
    extras_require={
        "ui": [
            "tqdm>=4.66.0",
            "colorlog>=6.8.0",
        ],
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "gallery-cache=gallery_cache.cli:main",
        ],
    },
)
