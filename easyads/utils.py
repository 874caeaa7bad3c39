# Copyright 2022 Google LLC
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
"""Module for various utility functions."""

from __future__ import annotations

import datetime
import logging
import sys
from collections.abc import Sequence

from dateutil import relativedelta
from rich import logging as rich_logging


def resolve_date(date_string: str) -> str:
  """Converts lookback macros to actual dates.

  Supported macros are :YYYY, :YYYYMM and :YYYYMMDD optionally followed
  by -N lookback (years, months or days respectively). Other values are
  returned as is.

  Returns:
      Date string in YYYY-MM-DD format.

  Raises:
      ValueError:
          If dynamic lookback value (:YYYYMMDD-N) is incorrect.
  """
  date_string = str(date_string)
  if not date_string.startswith(':YYYY'):
    return date_string
  current_date = datetime.date.today()
  base_date, *lookback = date_string.split('-')
  if len(lookback) > 1:
    raise ValueError(f'Invalid date macro: {date_string}')
  try:
    days_ago = int(lookback[0]) if lookback else 0
  except ValueError as e:
    raise ValueError(
      'Must provide numeric value for a number lookback period, '
      'i.e. :YYYYMMDD-1'
    ) from e
  if base_date == ':YYYY':
    new_date = datetime.date(current_date.year, 1, 1)
    delta = relativedelta.relativedelta(years=days_ago)
  elif base_date == ':YYYYMM':
    new_date = datetime.date(current_date.year, current_date.month, 1)
    delta = relativedelta.relativedelta(months=days_ago)
  elif base_date == ':YYYYMMDD':
    new_date = current_date
    delta = relativedelta.relativedelta(days=days_ago)
  else:
    raise ValueError(f'Invalid date macro: {date_string}')
  return (new_date - delta).strftime('%Y-%m-%d')


_NOISY_LOGGERS = (
  'google.ads.googleads.client',
  'google.auth.transport.requests',
  'smart_open.smart_open_lib',
  'urllib3.connectionpool',
  'faker.factory',
)


def init_logging(
  loglevel: str = 'INFO',
  logger_type: str = 'local',
  name: str = 'easyads',
  quiet_loggers: Sequence[str] = _NOISY_LOGGERS,
) -> logging.Logger:
  """Configures logging for scripts using easyads.

  Root logger gets either rich or plain handler, `easyads` loggers follow
  `loglevel` and loggers of underlying libraries are limited to warnings.

  Args:
      loglevel: Minimal level of messages to display.
      logger_type: `rich` for colored output, plain formatter otherwise.
      name: Name of the returned logger.
      quiet_loggers: Library loggers that should only report warnings.

  Returns:
      Logger with the requested name.
  """
  if logger_type == 'rich':
    handler = rich_logging.RichHandler(rich_tracebacks=True)
    log_format = '%(message)s'
  else:
    handler = logging.StreamHandler(sys.stdout)
    log_format = '[%(asctime)s][%(name)s][%(levelname)s] %(message)s'
  logging.basicConfig(
    format=log_format,
    level=loglevel,
    datefmt='%Y-%m-%d %H:%M:%S',
    handlers=[handler],
  )
  logging.getLogger('easyads').setLevel(loglevel)
  for logger_name in quiet_loggers:
    logging.getLogger(logger_name).setLevel(logging.WARNING)
  return logging.getLogger(name)
