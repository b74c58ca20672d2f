from setuptools import setup, find_packages
import re
import os

# Read version from version.py without importing it
version_file = os.path.join("appstack_operator", "version.py")
with open(version_file, "r") as f:
    version_content = f.read()

# Extract version using regex
version_match = re.search(r'__version__\s*=\s*["\']([^"\']+)["\']', version_content)
if not version_match:
    raise RuntimeError(f"Unable to find version string in {version_file}")
version = version_match.group(1)

setup(
    name="appstack-operator",
    version=version,
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"appstack_operator": ["templates/*.tpl"]},
    install_requires=[
        "kopf>=1.37.0",
        "kubernetes>=29.0.0",
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        "PyYAML>=6.0",
        "urllib3>=1.26.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-mock>=3.10.0",
            "pytest-cov>=4.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "appstack-operator=appstack_operator.handlers:main",
        ],
    },
    python_requires=">=3.10",
    description=(
        "Kubernetes operator that converges a database, a shared filesystem "
        "and a GitOps-deployed application for each AppStack resource"
    ),
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: System :: Systems Administration",
    ],
)
