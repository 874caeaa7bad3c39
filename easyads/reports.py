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

# pylint: disable=C0330, g-bad-import-order, g-multiple-import

"""Module for getting performance reports from Ads API.

ReportFetcher downloads report as CSV text and formats it into
FormattedReport - ordered sequence of records keyed by column name.
"""

from __future__ import annotations

import csv
import dataclasses
import datetime
import enum
import io
import logging
from collections.abc import Iterator, Sequence
from typing import Any, Literal

from easyads import api_clients, exceptions, utils

logger = logging.getLogger(__name__)

_COMMON_FIELDS = {
  'Date': 'segments.date',
  'Impressions': 'metrics.impressions',
  'Clicks': 'metrics.clicks',
  'Cost': 'metrics.cost_micros',
  'Conversions': 'metrics.conversions',
  'Ctr': 'metrics.ctr',
  'AverageCpc': 'metrics.average_cpc',
}

_PREDEFINED_DATE_RANGES = frozenset(
  (
    'TODAY',
    'YESTERDAY',
    'LAST_7_DAYS',
    'LAST_14_DAYS',
    'LAST_30_DAYS',
    'LAST_BUSINESS_WEEK',
    'LAST_WEEK_MON_SUN',
    'LAST_WEEK_SUN_SAT',
    'THIS_WEEK_MON_TODAY',
    'THIS_WEEK_SUN_TODAY',
    'THIS_MONTH',
    'LAST_MONTH',
  )
)


class ReportType(enum.Enum):
  """Supported reports and the resources they are built from."""

  CAMPAIGN_PERFORMANCE = 'campaign'
  AD_GROUP_PERFORMANCE = 'ad_group'
  KEYWORDS_PERFORMANCE = 'keyword_view'

  @property
  def resource(self) -> str:
    return self.value

  @property
  def available_fields(self) -> dict[str, str]:
    """Mapping between column names and API fields."""
    return {**_REPORT_FIELDS[self], **_COMMON_FIELDS}

  @property
  def default_columns(self) -> tuple[str, ...]:
    return tuple(_REPORT_FIELDS[self]) + ('Impressions', 'Clicks', 'Cost')


_REPORT_FIELDS: dict[ReportType, dict[str, str]] = {
  ReportType.CAMPAIGN_PERFORMANCE: {
    'CampaignId': 'campaign.id',
    'CampaignName': 'campaign.name',
    'CampaignStatus': 'campaign.status',
  },
  ReportType.AD_GROUP_PERFORMANCE: {
    'CampaignId': 'campaign.id',
    'AdGroupId': 'ad_group.id',
    'AdGroupName': 'ad_group.name',
    'AdGroupStatus': 'ad_group.status',
  },
  ReportType.KEYWORDS_PERFORMANCE: {
    'CampaignId': 'campaign.id',
    'AdGroupId': 'ad_group.id',
    'Id': 'ad_group_criterion.criterion_id',
    'Criteria': 'ad_group_criterion.keyword.text',
    'KeywordMatchType': 'ad_group_criterion.keyword.match_type',
  },
}


@dataclasses.dataclass(frozen=True)
class DateRange:
  """Inclusive range of dates in YYYY-MM-DD format.

  Both dates accept lookback macros (:YYYYMMDD-N, :YYYYMM-N, :YYYY-N).
  """

  start: str
  end: str

  def __post_init__(self) -> None:
    try:
      start = utils.resolve_date(self.start)
      end = utils.resolve_date(self.end)
      start_date = datetime.datetime.strptime(start, '%Y-%m-%d').date()
      end_date = datetime.datetime.strptime(end, '%Y-%m-%d').date()
    except ValueError as e:
      raise exceptions.ConfigurationError(f'Invalid date range: {e}') from e
    if start_date > end_date:
      raise exceptions.ConfigurationError(
        f'Start date {start} is after end date {end}'
      )
    object.__setattr__(self, 'start', start_date.isoformat())
    object.__setattr__(self, 'end', end_date.isoformat())


@dataclasses.dataclass(frozen=True)
class ReportConfig:
  """Specifies what data should be requested for a report.

  Attributes:
      date_range: Explicit dates the report should cover.
      during: Predefined date range (i.e. LAST_7_DAYS).
      fields: Column names to request, report defaults when omitted.
      customer_id: Account to get data from, client default when omitted.
  """

  date_range: DateRange | tuple[str, str] | None = None
  during: str | None = None
  fields: Sequence[str] | None = None
  customer_id: str | None = None

  def __post_init__(self) -> None:
    """Ensures that values passed during __init__ correctly formatted."""
    if self.date_range and self.during:
      raise exceptions.ConfigurationError(
        'Only one of date_range and during can be specified'
      )
    if self.date_range and not isinstance(self.date_range, DateRange):
      if (
        not isinstance(self.date_range, (list, tuple))
        or len(self.date_range) != 2
      ):
        raise exceptions.ConfigurationError(
          'date_range should contain start and end dates, '
          f'got {self.date_range!r}'
        )
      object.__setattr__(self, 'date_range', DateRange(*self.date_range))
    if self.during:
      during = str(self.during).upper()
      if during not in _PREDEFINED_DATE_RANGES:
        raise exceptions.ConfigurationError(
          f'Unsupported predefined date range: {self.during}'
        )
      object.__setattr__(self, 'during', during)
    if self.fields is not None:
      if isinstance(self.fields, str):
        fields = tuple(field.strip() for field in self.fields.split(','))
      else:
        fields = tuple(self.fields)
      if not fields:
        raise exceptions.ConfigurationError('At least one field is required')
      object.__setattr__(self, 'fields', fields)


def build_query(
  report_type: ReportType, config: ReportConfig
) -> tuple[str, dict[str, str]]:
  """Creates GAQL query for a given report.

  Args:
      report_type: Report that should be built.
      config: Requested fields and dates.

  Returns:
      Query text and mapping between column names and API fields.

  Raises:
      ConfigurationError: When requested fields are not available.
  """
  available_fields = report_type.available_fields
  columns = config.fields or report_type.default_columns
  if unknown_fields := [
    column for column in columns if column not in available_fields
  ]:
    raise exceptions.ConfigurationError(
      f'Fields {", ".join(unknown_fields)} are not available for '
      f'{report_type.name} report'
    )
  fields = {column: available_fields[column] for column in columns}
  query_text = (
    f'SELECT {", ".join(fields.values())} FROM {report_type.resource}'
  )
  if config.date_range:
    query_text += (
      f" WHERE segments.date BETWEEN '{config.date_range.start}' "
      f"AND '{config.date_range.end}'"
    )
  elif config.during:
    query_text += f' WHERE segments.date DURING {config.during}'
  return query_text, fields


@dataclasses.dataclass(frozen=True)
class RawReport:
  """Unparsed CSV payload returned by reporting endpoint."""

  text: str
  report_type: ReportType


class FormattedReport:
  """Ordered records of the report keyed by column name.

  Attributes:
      column_names: Names of report columns in the order of raw report.
      rows: Records in the order of raw report.
  """

  def __init__(
    self, rows: Sequence[dict[str, str]], column_names: Sequence[str]
  ) -> None:
    self.rows = list(rows)
    self.column_names = list(column_names)

  @classmethod
  def from_csv(cls, text: str | None) -> FormattedReport:
    """Parses CSV text with a header row.

    Args:
        text: Raw report.

    Returns:
        Report with one record per CSV row.

    Raises:
        FormatError: When text is missing, has no header or rows have
            different number of cells than the header.
    """
    if not text:
      raise exceptions.FormatError('Raw report is empty')
    reader = csv.reader(io.StringIO(text))
    header = next(reader, None)
    if not header or not all(column.strip() for column in header):
      raise exceptions.FormatError('Raw report has no valid header row')
    if len(set(header)) != len(header):
      raise exceptions.FormatError(
        f'Raw report header contains duplicate columns: {header}'
      )
    rows = []
    try:
      for values in reader:
        if not values:
          continue
        if len(values) != len(header):
          raise exceptions.FormatError(
            f'Line {reader.line_num} has {len(values)} values, '
            f'expected {len(header)}'
          )
        rows.append(dict(zip(header, values)))
    except csv.Error as e:
      raise exceptions.FormatError(f'Raw report is malformed: {e}') from e
    return cls(rows, header)

  def to_list(
    self, row_type: Literal['dict', 'list'] = 'dict'
  ) -> list[dict[str, str]] | list[list[str]]:
    """Converts report to a list of records or list of values."""
    if row_type == 'dict':
      return [dict(row) for row in self.rows]
    if row_type == 'list':
      return [
        [row[column] for column in self.column_names] for row in self.rows
      ]
    raise ValueError(f'Unsupported row_type: {row_type}')

  def to_pandas(self) -> Any:
    """Converts report to pandas DataFrame.

    Raises:
        ImportError: When pandas is not installed.
    """
    try:
      import pandas as pd
    except ImportError as e:
      raise ImportError(
        'Please install easyads with pandas support - '
        '`pip install easyads[pandas]`'
      ) from e
    return pd.DataFrame(data=self.to_list('list'), columns=self.column_names)

  def __len__(self) -> int:
    return len(self.rows)

  def __iter__(self) -> Iterator[dict[str, str]]:
    return iter(self.rows)

  def __getitem__(self, key: int | slice) -> dict[str, str] | FormattedReport:
    if isinstance(key, slice):
      return FormattedReport(self.rows[key], self.column_names)
    return self.rows[key]

  def __eq__(self, other: object) -> bool:
    if isinstance(other, FormattedReport):
      return (self.column_names, self.rows) == (other.column_names, other.rows)
    if isinstance(other, list):
      return self.rows == other
    return NotImplemented

  def __repr__(self) -> str:
    return (
      f'FormattedReport(columns={self.column_names}, n_rows={len(self.rows)})'
    )


class ReportState(enum.Enum):
  UNFETCHED = 1
  RAW_AVAILABLE = 2
  FORMATTED = 3


class ReportFetcher:
  """Downloads and formats a single report.

  Each fetcher covers one report cycle: download() and then format().

  Attributes:
      client: Client used for connecting to Ads API.
      config: Fields and dates of the report.
      report_type: Type of the report.
      state: Current step of the report cycle.
  """

  def __init__(
    self,
    client: api_clients.BaseClient,
    config: ReportConfig | None = None,
    report_type: ReportType | str = ReportType.CAMPAIGN_PERFORMANCE,
  ) -> None:
    self.client = client
    self.config = config or ReportConfig()
    if not isinstance(report_type, ReportType):
      try:
        report_type = ReportType[str(report_type).upper()]
      except KeyError as e:
        raise exceptions.ConfigurationError(
          f'Unsupported report type: {report_type}'
        ) from e
    self.report_type = report_type
    self.state = ReportState.UNFETCHED
    self._raw_report: RawReport | None = None
    self._formatted_report: FormattedReport | None = None

  @property
  def raw_report(self) -> RawReport | None:
    return self._raw_report

  @property
  def formatted_report(self) -> FormattedReport | None:
    return self._formatted_report

  def download(self) -> RawReport:
    """Requests raw CSV report from Ads API.

    Returns:
        Downloaded raw report.

    Raises:
        ReportStateError: When report has already been downloaded.
        ConfigurationError: When requested fields are not available.
        TransportError: When data cannot be fetched from Ads API.
    """
    if self.state != ReportState.UNFETCHED:
      raise exceptions.ReportStateError(
        f'{self.report_type.name} report has already been downloaded, '
        'use a new ReportFetcher to get fresh data'
      )
    query_text, fields = build_query(self.report_type, self.config)
    logger.info('Downloading %s report', self.report_type.name)
    logger.debug('Query text: %s', query_text)
    text = self.client.download_report(
      query_text, fields, customer_id=self.config.customer_id
    )
    self._raw_report = RawReport(text=text, report_type=self.report_type)
    self.state = ReportState.RAW_AVAILABLE
    return self._raw_report

  def format(self) -> FormattedReport:
    """Parses downloaded raw report.

    Formatting an already formatted report returns the stored result.

    Returns:
        Ordered records of the report.

    Raises:
        FormatError: When report is not downloaded or malformed.
    """
    if self.state == ReportState.FORMATTED:
      return self._formatted_report
    if self.state == ReportState.UNFETCHED:
      raise exceptions.FormatError(
        'Report must be downloaded before it can be formatted'
      )
    self._formatted_report = FormattedReport.from_csv(self._raw_report.text)
    self.state = ReportState.FORMATTED
    logger.info(
      '%s report contains %d rows',
      self.report_type.name,
      len(self._formatted_report),
    )
    return self._formatted_report

  def fetch(self) -> FormattedReport:
    """Downloads and formats report in one step."""
    self.download()
    return self.format()


def campaign_performance_report(
  client: api_clients.BaseClient, config: ReportConfig | None = None
) -> ReportFetcher:
  """Creates fetcher for Campaign Performance report."""
  return ReportFetcher(client, config, ReportType.CAMPAIGN_PERFORMANCE)
