from setuptools import setup, find_packages

setup(
    name='enso-pack',
    version='0.1.0',
    py_modules=['ensopack', 'compiler'],
    packages=find_packages(include=['core', 'core.*']),
    python_requires='>=3.9',
    install_requires=[
        'lark',
        'pydantic>=2',
        'python-minifier>=2.9',
        'humanize',
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
    entry_points={
        'console_scripts': [
            'ensopack = ensopack:main',
        ],
    },
)
