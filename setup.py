#!/usr/bin/env python

from setuptools import setup, find_packages

version = '0.1.0'

setup(name='dvl-teledyne',
      version=version,
      description='Host side driver for the Teledyne RD Instruments ExplorerDVL',
      license='Apache 2.0',
      keywords=['dvl', 'teledyne', 'pd0'],
      packages=find_packages(),
      package_data={
          '': ['*.yml'],
      },
      python_requires='>=3.6',
      install_requires=[
          'pyserial',
          'PyYAML',
          'ntplib',
          'docopt',
      ],
      extras_require={
          'test': [
              'pytest',
              'mock',
          ],
      },
      entry_points={
          'console_scripts': [
              'dvl_teledyne_read=dvl.instrument.teledyne.explorer.cli:read_main',
              'dvl_teledyne_configure=dvl.instrument.teledyne.explorer.cli:configure_main',
              'dvl_teledyne_send_file=dvl.instrument.teledyne.explorer.cli:send_file_main',
          ],
      },
      )
