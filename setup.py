import setuptools

# Dependencies
requirements = [
    'loguru',
    'numpy',
    'pandas~=2.3.0',
    'scipy',
    'tqdm'
]

test_requirements = [
    'pytest'
]

setuptools.setup(
    name = 'edaqa',
    version = '1.0',
    description = 'Automated quality assessment of ambulatory '
                  'electrodermal activity data',
    license = 'GPL-3.0',
    packages = setuptools.find_packages(exclude = ['tests', 'tests.*']),
    install_requires = requirements,
    extras_require = {'test': test_requirements},
    python_requires = '>=3.9'
)
