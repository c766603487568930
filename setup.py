#!/usr/bin/env python
from setuptools import find_packages, setup

VERSION_INFO = {}
with open("mediahistory/version.py", "r") as f:
    exec(f.read(), VERSION_INFO)  # nosec
VERSION = VERSION_INFO["get_version"]()
INSTALL_REQUIREMENTS = [
    "Django>=4.2",
    "celery>=5.3",
    "defusedxml",
    "django-celery-beat",
    "django-ninja>=1.0",
    "django-redis",
    "django-structlog>=5.0",
    "psycopg2-binary",
    "pydantic>=2.0",
    "redis",
    "requests",
    "sentry-sdk",
    "structlog",
    "urllib3",
]
TEST_REQUIREMENTS = ["pytest", "pytest-django"]
SCRIPTS = ["manage.py"]
DESCRIPTION = "Media consumption history importer"
CLASSIFIERS = """\
Environment :: Web Environment
Framework :: Django
Programming Language :: Python
Programming Language :: Python :: 3
""".splitlines()

with open("README.md", "r") as f:
    LONG_DESCRIPTION = f.read()


setup(
    name="mediahistory",
    version=VERSION,
    description=DESCRIPTION,
    long_description=LONG_DESCRIPTION,
    packages=find_packages(exclude=["*.tests", "*.tests.*"]),
    include_package_data=True,
    scripts=SCRIPTS,
    install_requires=INSTALL_REQUIREMENTS,
    extras_require={"test": TEST_REQUIREMENTS},
    classifiers=CLASSIFIERS,
)
