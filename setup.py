#
# Copyright 2017 University of Southern California
# Distributed under the Apache License, Version 2.0. See LICENSE for more info.
#

""" Installation script for the dynnft package.
"""

from setuptools import setup, find_packages
import re
import io

__version__ = re.search(
    r'__version__\s*=\s*[\'"]([^\'"]*)[\'"]',
    io.open('dynnft/core/__init__.py', encoding='utf_8_sig').read()
    ).group(1)


url = "https://github.com/informatics-isi-edu/dynnft"
author = 'USC Information Sciences Institute, Informatics Systems Research Division'
author_email = 'isrd-support@isi.edu'


setup(
    name='dynnft',
    description='Python APIs and CLI for table-driven dynamic NFT metadata.',
    long_description='For further information, visit the project [homepage](%s).' % url,
    long_description_content_type='text/markdown',
    url=url,
    author=author,
    author_email=author_email,
    maintainer=author,
    maintainer_email=author_email,
    version=__version__,
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={
        'dynnft.config': ['examples/*.json'],
        'dynnft.core': ['schemas/*.schema.json']
    },
    python_requires='>=3.8, <4',
    entry_points={
        'console_scripts': [
            'dynnft-cli = dynnft.core.dynnft_cli:main',
        ]
    },
    install_requires=[
        'requests',
        'urllib3>=1.26,<3',
        'SQLAlchemy>=1.4',
        'jsonschema>=3.1'
    ],
    extras_require={
        'tests': ['pytest']
    },
    license='Apache 2.0',
    classifiers=[
        'Intended Audience :: Developers',
        'License :: OSI Approved :: Apache Software License',
        'Operating System :: POSIX',
        'Operating System :: MacOS :: MacOS X',
        'Operating System :: Microsoft :: Windows',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12'
    ]
)
