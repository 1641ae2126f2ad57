from setuptools import setup

try:
    desc = open('README.md').read()
except (IOError, FileNotFoundError) as e:
    desc = ''

setup(name='lsopt',
      license='MIT License',
      version='0.1.0',

      packages=['lsopt', 'lsopt.opt'],
      entry_points={
          'console_scripts': ['lsopt=lsopt.main:main'],
      },
      python_requires='>=3.8',
      install_requires=[
          "numpy>=1.17",
          "scipy>=1.3",
          "pygments>=2.0",
      ],
      extras_require={
          'test': ['pytest'],
      },

      platforms='any',
      classifiers = [
          'Programming Language :: Python :: 3',
          'Development Status :: 2 - Pre-Alpha',
          'Natural Language :: English',
          'Intended Audience :: Developers',
          'Intended Audience :: Science/Research',
          'License :: OSI Approved :: MIT License',
          'Operating System :: OS Independent',
          'Topic :: Scientific/Engineering :: Mathematics',
      ],
      description='Nonlinear least-squares optimization with Gauss-Newton '
                  'and Levenberg-Marquardt',
      long_description=desc,
      long_description_content_type='text/markdown',
)
