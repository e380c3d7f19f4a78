"""
Setup script for the persistence harness.

This allows the harness to be installed as a library, a pytest plugin and a
command-line tool.
"""

from setuptools import setup, find_packages

setup(
    name='persistence-harness',
    version='1.0.0',
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    install_requires=[
        'click>=8.0.0',
        'sqlalchemy>=2.0.0',
        'returns>=0.20.0',
        'pyyaml>=6.0',
        'pytest>=8.0.0',
    ],
    extras_require={
        'postgresql': [
            'psycopg2-binary>=2.9.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'persistence-harness=persistence_harness.cli:cli',
        ],
        'pytest11': [
            'persistence_harness=persistence_harness.pytest_plugin',
        ],
    },
    python_requires='>=3.10',
)
