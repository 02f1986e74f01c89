from setuptools import setup, find_packages
import re

# Read version from __init__.py without importing the package
with open("tg_undelete/__init__.py", "r", encoding="utf-8") as f:
    version_match = re.search(r'__version__\s*=\s*[\'"]([^\'"]*)[\'"]', f.read())
    version = version_match.group(1) if version_match else "0.1.0"

# Read long description from README.md
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Read requirements from requirements.txt
with open("requirements.txt", "r", encoding="utf-8") as f:
    requirements = [line.strip() for line in f if line.strip() and not line.startswith("#")]

setup(
    name="tg-undelete",
    version=version,
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=requirements,
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        'console_scripts': [
            'tg-undelete=tg_undelete.__main__:main',
        ],
    },
    description="Resumable migration of a Telegram chat archive into a channel",
    long_description=long_description,
    long_description_content_type="text/markdown",
    keywords="telegram, archive, migration, bot-api, channel",
    python_requires=">=3.9",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: End Users/Desktop",
        "Intended Audience :: System Administrators",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    include_package_data=True,
    package_data={
        "tg_undelete": ["py.typed"],
    },
)
