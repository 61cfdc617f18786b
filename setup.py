from setuptools import setup, find_packages

setup(name='csvfeed',
      version='0.1.0',
      description='Incremental CSV parser and composer for Python',
      packages=find_packages(exclude=['tests', 'tests.*', 'scripts']),
      python_requires='>=3.8',
      install_requires=['numpy'],
      extras_require={'test': ['pytest']},
      zip_safe=False)
