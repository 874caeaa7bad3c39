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
"""Module for loading client configuration.

Configuration lives in a regular google-ads.yaml file. Credentials are
stored at the top level (as expected by GoogleAdsClient) while easyads
specific settings are kept under `easyads` section:

    developer_token: XXXX
    refresh_token: XXXX
    client_id: XXXX
    client_secret: XXXX
    login_customer_id: 1234567890
    easyads:
      customer_id: 123-456-7890
      max_attempts: 3
"""

from __future__ import annotations

import dataclasses
import logging
import os
from pathlib import Path
from typing import Any

import smart_open
import yaml

from easyads import exceptions

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = str(Path.home() / 'google-ads.yaml')
CONFIG_PATH_ENV = 'GOOGLE_ADS_CONFIGURATION_FILE_PATH'
CUSTOMER_ID_ENV = 'EASYADS_CUSTOMER_ID'
SECTION_NAME = 'easyads'


@dataclasses.dataclass
class ClientConfig:
  """Stores values required to build an authenticated client.

  Attributes:
      customer_id:
          Account all keywords and reports belong to.
      login_customer_id:
          Manager account used to access customer_id.
      api_version:
          Google Ads API version; library default when omitted.
      max_attempts:
          Number of attempts for each API call; 1 disables retries.
      use_proto_plus:
          Whether GoogleAdsClient should return proto-plus messages.
      google_ads:
          Credentials passed to GoogleAdsClient as is.
  """

  customer_id: str | None = None
  login_customer_id: str | None = None
  api_version: str | None = None
  max_attempts: int = 1
  use_proto_plus: bool = True
  google_ads: dict[str, Any] = dataclasses.field(default_factory=dict)

  def __post_init__(self) -> None:
    """Ensures that values passed during __init__ correctly formatted."""
    self.customer_id = normalize_customer_id(self.customer_id)
    self.login_customer_id = normalize_customer_id(self.login_customer_id)
    try:
      self.max_attempts = int(self.max_attempts)
    except (TypeError, ValueError) as e:
      raise exceptions.ConfigurationError(
        f'max_attempts should be integer, got {self.max_attempts!r}'
      ) from e
    if self.max_attempts < 1:
      raise exceptions.ConfigurationError('max_attempts should be at least 1')
    if self.api_version and not str(self.api_version).startswith('v'):
      self.api_version = f'v{self.api_version}'

  @property
  def credentials(self) -> dict[str, Any]:
    """Mapping suitable for GoogleAdsClient.load_from_dict."""
    credentials = dict(self.google_ads)
    if self.login_customer_id:
      credentials['login_customer_id'] = self.login_customer_id
    credentials.setdefault('use_proto_plus', self.use_proto_plus)
    return credentials

  @classmethod
  def from_dict(cls, config_parameters: dict[str, Any]) -> ClientConfig:
    """Builds config from google-ads.yaml like mapping.

    Args:
        config_parameters: Credentials with optional `easyads` section.

    Returns:
        Config with credentials and easyads specific settings.

    Raises:
        ConfigurationError:
            When `easyads` section is not a mapping or contains unknown keys.
    """
    credentials = dict(config_parameters or {})
    section = credentials.pop(SECTION_NAME, None) or {}
    if not isinstance(section, dict):
      raise exceptions.ConfigurationError(
        f'`{SECTION_NAME}` section should be a mapping, got {section!r}'
      )
    section = dict(section)
    if unknown := set(section) - {
      field.name
      for field in dataclasses.fields(cls)
      if field.name != 'google_ads'
    }:
      raise exceptions.ConfigurationError(
        f'Unsupported parameters in `{SECTION_NAME}` section: '
        f'{", ".join(sorted(unknown))}'
      )
    if login_customer_id := credentials.pop('login_customer_id', None):
      section.setdefault('login_customer_id', str(login_customer_id))
    if 'use_proto_plus' in credentials:
      section.setdefault(
        'use_proto_plus', bool(credentials.pop('use_proto_plus'))
      )
    return cls(**section, google_ads=credentials)

  @classmethod
  def from_file(
    cls, path: str | os.PathLike[str] | None = None
  ) -> ClientConfig:
    """Loads config from local or remote google-ads.yaml.

    Args:
        path: Location of the file; environment or home folder by default.

    Returns:
        Loaded config with environment overrides applied.

    Raises:
        ConfigurationError: When file cannot be found or parsed.
    """
    path = path or os.getenv(CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH)
    logger.debug('Loading configuration from %s', path)
    try:
      with smart_open.open(path, 'r', encoding='utf-8') as f:
        config_parameters = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
      raise exceptions.ConfigurationError(
        f'Cannot load configuration from {path}'
      ) from e
    if not isinstance(config_parameters, dict):
      raise exceptions.ConfigurationError(f'Invalid configuration in {path}')
    return cls.from_dict(config_parameters).with_env_overrides()

  def with_env_overrides(self) -> ClientConfig:
    """Applies values from environment variables on top of the config."""
    if customer_id := os.getenv(CUSTOMER_ID_ENV):
      return dataclasses.replace(self, customer_id=customer_id)
    return self


def normalize_customer_id(customer_id: str | int | None) -> str | None:
  """Converts customer_id to a format expected by Ads API (no dashes)."""
  if not customer_id:
    return None
  return str(customer_id).replace('-', '').strip()
