"""Install the storefront admin package."""

from setuptools import setup, find_packages

setup(
    name='storefront-admin',
    version='0.1.0',
    packages=find_packages(exclude=['tests', 'tests.*']),
    install_requires=[
        "fastapi",
        "pydantic>=2",
        "sqlalchemy>=2",
        "pyjwt",
        "python-json-logger",
        "click",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "httpx",
        ],
    },
    entry_points={
        "console_scripts": [
            "storefront-admin=storefront_admin.manage:cli",
        ],
    },
    zip_safe=False
)
