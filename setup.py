
from setuptools import setup, find_packages

MAJOR = 0
MINOR = 1
MICRO = 0
VERSION = '%d.%d.%d' % (MAJOR, MINOR, MICRO)


def readme():
    with open('README.md') as f:
        content = f.read()
    return content[:content.find('## Tests')]


setup(
    name='socgen',
    version=VERSION,
    license='Apache License, Version 2.0',
    description='Bus expansion and Verilog generation for SoC netlists',
    long_description=readme(),
    long_description_content_type='text/markdown',
    author='socgen developers',
    packages=find_packages(exclude=['tests', 'tests.*']),
    python_requires='>=3.9',
    include_package_data=True,
    install_requires=[
        'PyYAML >= 6.0',
    ],
    extras_require={
        'dev': [
            'pytest >= 6.2.4',
        ],
    },
    entry_points={
        'console_scripts': [
            'socgen = socgen.__main__:main',
        ],
    },
)
