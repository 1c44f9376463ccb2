from setuptools import setup

version = '0.1.0'
long_description = 'A parser for the SDL3 C headers and generator of Rust FFI bindings'

setup(
  name='sdlgen',
  version=version,
  description=long_description,
  packages=['sdlgen'],
  package_dir={'sdlgen': 'sdlgen'},
  install_requires=[
    'xtermcolor>=1.0.1'
  ],
  entry_points={
  'console_scripts': [
      'sdlgen = sdlgen.Main:Cli'
    ]
  },
  test_suite='test',
  license = "MIT",
  keywords = "SDL, SDL3, C, headers, parser, bindings, Rust, FFI",
  classifiers=[
    "License :: OSI Approved :: MIT License",
    "Programming Language :: Python :: 3",
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Natural Language :: English",
    "Topic :: Software Development :: Code Generators"
  ]
)
