from setuptools import setup

# Get long description from the README.rst file.
with open("README.rst") as file:
    LONG_DESC = file.read()

# Get version number from the module's __init__.py file.
with open("./src/arbor/__init__.py") as src:
    VER = [
        line.split('"')[1] for line in src.readlines() if line.startswith("__version__")
    ][0]

setup(
    name="arbor",
    version=VER,
    description="Python 3 module for a state-checked LDAP directory connection.",
    long_description=LONG_DESC,
    long_description_content_type="text/x-rst",
    license="MIT",
    package_dir={"arbor": "src/arbor"},
    package_data={"arbor": ["py.typed"]},
    packages=["arbor"],
    include_package_data=True,
    python_requires=">=3.7",
    install_requires=[
        "ldap3 >= 2.9",
        'typing-extensions >= 4.0.0 ; python_version < "3.8"',
    ],
    extras_require={"test": ["pytest"]},
    keywords=["python3", "ldap", "ldap3", "directory", "paged search"],
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3 :: Only",
        "Programming Language :: Python :: 3.7",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: System :: Systems Administration :: Authentication/Directory :: LDAP",
    ],
)
