# Copyright 2024 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     https://www.apache.org/licenses/LICENSE-2.0
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Module for defining exceptions."""

from __future__ import annotations


class EasyAdsException(Exception):
  """Base exception."""


class ConfigurationError(EasyAdsException):
  """Specifies missing or invalid configuration values."""


class TransportError(EasyAdsException):
  """Specifies failures returned by Google Ads API services."""


class FormatError(EasyAdsException):
  """Specifies missing or malformed raw report."""


class ReportStateError(EasyAdsException):
  """Specifies report operation called in an invalid state."""
