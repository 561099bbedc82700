"""Setup script for seller-scorecard package"""

from setuptools import setup, find_packages

dependencies = [
    "click>=8.0.0",
    "pyyaml>=6.0",
]

setup(
    name="seller-scorecard",
    version="1.0.0",
    description="Weighted performance scores and grades for dealership salespeople",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=dependencies,
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "seller-scorecard=seller_scorecard.cli:main",
        ],
    },
    python_requires=">=3.8",
)
