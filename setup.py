# Copyright 2024 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Module for installing easyads as a package."""

from __future__ import annotations

import itertools
import pathlib

import setuptools

HERE = pathlib.Path(__file__).parent

README = (HERE / 'README.md').read_text()

EXTRAS_REQUIRE = {
  'pandas': [
    'pandas>=1.3.4',
  ],
  'simulator': [
    'Faker',
  ],
  'test': [
    'pytest',
    'pytest-mock',
    'Faker',
  ],
}
EXTRAS_REQUIRE['full'] = list(set(itertools.chain(*EXTRAS_REQUIRE.values())))

setuptools.setup(
  name='easyads',
  version='0.1.0',
  python_requires='>=3.9',
  description=(
    'Library for building keyword operations and fetching performance '
    'reports from Google Ads API.'
  ),
  long_description=README,
  long_description_content_type='text/markdown',
  author='Google Inc. (gTech gPS CSE team)',
  author_email='no-reply@google.com',
  license='Apache 2.0',
  classifiers=[
    'Programming Language :: Python :: 3 :: Only',
    'Programming Language :: Python :: 3.9',
    'Programming Language :: Python :: 3.10',
    'Programming Language :: Python :: 3.11',
    'Programming Language :: Python :: 3.12',
    'Intended Audience :: Developers',
    'Topic :: Software Development :: Libraries :: Python Modules',
    'Operating System :: OS Independent',
    'License :: OSI Approved :: Apache Software License',
  ],
  packages=setuptools.find_packages(include=['easyads', 'easyads.*']),
  install_requires=[
    'google-ads>=24.1.0',
    'google-auth',
    'google-api-core',
    'smart_open',
    'pyyaml',
    'python-dateutil',
    'rich',
    'tenacity',
  ],
  extras_require=EXTRAS_REQUIRE,
)
