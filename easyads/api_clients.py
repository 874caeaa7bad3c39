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

# pylint: disable=C0330, g-bad-import-order, g-multiple-import

"""Module for defining clients to interact with Google Ads API.

Clients expose only two capabilities that keyword builders and report
fetchers rely on:
    * mutate_criteria - applies keyword operations to an account.
    * download_report - returns report data as CSV text.
"""

from __future__ import annotations

import abc
import csv
import enum
import functools
import io
import logging
import os
from collections.abc import Mapping, Sequence
from typing import Any, Callable, Final

import google.auth
import tenacity
from google.ads.googleads import client as googleads_client
from google.ads.googleads import errors as googleads_exceptions
from google.api_core import exceptions as google_exceptions

from easyads import config as easyads_config
from easyads import exceptions

GOOGLE_ADS_API_VERSION: Final = googleads_client._DEFAULT_VERSION

logger = logging.getLogger(__name__)


class BaseClient(abc.ABC):
  """Base API client class.

  Attributes:
      customer_id: Default account for all operations.
      api_version: Version of Google Ads API to use.
  """

  def __init__(
    self,
    customer_id: str | None = None,
    version: str = GOOGLE_ADS_API_VERSION,
  ) -> None:
    """Initializes client based on provided API version.

    Args:
        customer_id: Default account for all operations.
        version: Version of Google Ads API to use.
    """
    self.customer_id = easyads_config.normalize_customer_id(customer_id)
    self.api_version = (
      str(version) if str(version).startswith('v') else f'v{version}'
    )

  def resolve_customer_id(self, customer_id: str | None = None) -> str:
    """Returns provided customer_id or the default one.

    Raises:
        ConfigurationError: When neither value is available.
    """
    if customer_id := easyads_config.normalize_customer_id(customer_id):
      return customer_id
    if not self.customer_id:
      raise exceptions.ConfigurationError(
        'Customer ID must be set either in the client or in the call.'
      )
    return self.customer_id

  @abc.abstractmethod
  def mutate_criteria(
    self, operations: Sequence[Any], customer_id: str | None = None
  ) -> list[str]:
    """Applies keyword operations and returns created resource names."""

  @abc.abstractmethod
  def download_report(
    self,
    query_text: str,
    fields: Mapping[str, str],
    customer_id: str | None = None,
  ) -> str:
    """Runs query and returns results as CSV text with a header row."""


class AuthenticatedClient(BaseClient):
  """Client to interact with Google Ads API.

  Attributes:
      config: Settings the client was created with.
      client: GoogleAdsClient holding authenticated session.
      ads_service: GoogleAdsService to perform report requests.
      criterion_service: AdGroupCriterionService to perform mutations.
      wait: Wait strategy between retried attempts.
  """

  def __init__(
    self,
    config: easyads_config.ClientConfig | None = None,
    ads_client: googleads_client.GoogleAdsClient | None = None,
  ) -> None:
    """Initializes AuthenticatedClient from config or GoogleAdsClient.

    Args:
        config: Credentials and easyads specific settings.
        ads_client: Instantiated GoogleAdsClient.

    Raises:
        ConfigurationError:
            When GoogleAdsClient cannot be instantiated due to missing
            credentials.
    """
    self.config = config or easyads_config.ClientConfig()
    super().__init__(
      customer_id=self.config.customer_id,
      version=self.config.api_version or GOOGLE_ADS_API_VERSION,
    )
    self.client = ads_client or self._init_client()
    self.client.use_proto_plus = self.config.use_proto_plus
    self.ads_service = self.client.get_service('GoogleAdsService')
    self.criterion_service = self.client.get_service('AdGroupCriterionService')
    self.wait = tenacity.wait_exponential()

  @classmethod
  def from_config_file(
    cls, path: str | os.PathLike[str] | None = None
  ) -> AuthenticatedClient:
    """Builds client from local or remote google-ads.yaml."""
    return cls(easyads_config.ClientConfig.from_file(path))

  @classmethod
  def from_dict(cls, config_dict: dict[str, Any]) -> AuthenticatedClient:
    """Builds client from google-ads.yaml like mapping."""
    return cls(easyads_config.ClientConfig.from_dict(config_dict))

  @classmethod
  def from_googleads_client(
    cls,
    ads_client: googleads_client.GoogleAdsClient,
    customer_id: str | None = None,
  ) -> AuthenticatedClient:
    """Builds AuthenticatedClient from instantiated GoogleAdsClient.

    Args:
        ads_client: Instantiated GoogleAdsClient.
        customer_id: Default account for all operations.

    Returns:
        Instantiated AuthenticatedClient.
    """
    config = easyads_config.ClientConfig(
      customer_id=customer_id,
      api_version=ads_client.version,
      use_proto_plus=ads_client.use_proto_plus,
    )
    return cls(config=config, ads_client=ads_client)

  def _init_client(self) -> googleads_client.GoogleAdsClient:
    """Initializes GoogleAdsClient from config or environment.

    Returns:
      Instantiated GoogleAdsClient.

    Raises:
      ConfigurationError:
        if credentials are missing crucial parts.
    """
    if self.config.google_ads:
      credentials = self.config.credentials
      if not (developer_token := credentials.get('developer_token')):
        raise exceptions.ConfigurationError('developer_token is missing.')
      if (
        'refresh_token' not in credentials
        and 'json_key_file_path' not in credentials
      ):
        logger.debug('Using application default credentials')
        default_credentials, _ = google.auth.default(
          scopes=['https://www.googleapis.com/auth/adwords']
        )
        return googleads_client.GoogleAdsClient(
          credentials=default_credentials,
          developer_token=developer_token,
          login_customer_id=self.config.login_customer_id,
          version=self.api_version,
        )
      try:
        return googleads_client.GoogleAdsClient.load_from_dict(
          credentials, self.api_version
        )
      except ValueError as e:
        raise exceptions.ConfigurationError(
          'Cannot instantiate GoogleAdsClient'
        ) from e
    try:
      return googleads_client.GoogleAdsClient.load_from_env(self.api_version)
    except ValueError as e:
      raise exceptions.ConfigurationError(
        'Cannot instantiate GoogleAdsClient'
      ) from e

  def _call(self, func: Callable[..., Any], **kwargs: Any) -> Any:
    """Calls API method retrying it on server side errors.

    Number of attempts is taken from config; with a single attempt the
    error is raised right away.

    Raises:
        TransportError: When API call failed.
    """
    retryer = tenacity.Retrying(
      stop=tenacity.stop_after_attempt(self.config.max_attempts),
      wait=self.wait,
      retry=tenacity.retry_if_exception_type(
        google_exceptions.InternalServerError
      ),
      reraise=True,
    )
    try:
      return retryer(func, **kwargs)
    except googleads_exceptions.GoogleAdsException as e:
      for error in e.failure.errors:
        logger.error('Google Ads API error: %s', error.message)
      raise exceptions.TransportError(
        f'Request {e.request_id} failed with status {e.error.code().name}'
      ) from e
    except google_exceptions.GoogleAPIError as e:
      logger.error('Google Ads API call failed: %s', e)
      raise exceptions.TransportError(str(e)) from e

  def mutate_criteria(
    self, operations: Sequence[Any], customer_id: str | None = None
  ) -> list[str]:
    """Applies keyword operations via AdGroupCriterionService.

    Args:
        operations: Keyword operations built by KeywordBuilder.
        customer_id: Account to apply operations to.

    Returns:
        Resource names of created ad group criteria.

    Raises:
        TransportError: When API rejected the operations.
    """
    customer_id = self.resolve_customer_id(customer_id)
    criterion_operations = [
      self._to_criterion_operation(operation, customer_id)
      for operation in operations
    ]
    logger.debug(
      'Sending %d criterion operations for customer_id %s',
      len(criterion_operations),
      customer_id,
    )
    response = self._call(
      self.criterion_service.mutate_ad_group_criteria,
      customer_id=customer_id,
      operations=criterion_operations,
    )
    return [result.resource_name for result in response.results]

  def _to_criterion_operation(self, operation: Any, customer_id: str) -> Any:
    """Converts keyword Operation to AdGroupCriterionOperation message.

    Raises:
        ConfigurationError: When operator is not supported.
    """
    if operation.operator.value != 'ADD':
      raise exceptions.ConfigurationError(
        f'Unsupported operator: {operation.operator.value}'
      )
    operand = operation.operand
    criterion_operation = self.client.get_type('AdGroupCriterionOperation')
    criterion = criterion_operation.create
    criterion.ad_group = self.criterion_service.ad_group_path(
      customer_id, str(operand.ad_group_id)
    )
    criterion.keyword.text = operand.criterion.text
    criterion.keyword.match_type = getattr(
      self.client.enums.KeywordMatchTypeEnum,
      operand.criterion.match_type.value,
    )
    if operand.user_status:
      criterion.status = getattr(
        self.client.enums.AdGroupCriterionStatusEnum, operand.user_status.value
      )
    if operand.final_urls:
      criterion.final_urls.extend(operand.final_urls)
    if operand.bidding_strategy_configuration:
      bid, *_ = operand.bidding_strategy_configuration.bids
      criterion.cpc_bid_micros = bid.bid.micro_amount
    return criterion_operation

  def download_report(
    self,
    query_text: str,
    fields: Mapping[str, str],
    customer_id: str | None = None,
  ) -> str:
    """Runs GAQL query and serializes response to CSV.

    Args:
        query_text: GAQL query text.
        fields: Mapping between column names and API fields.
        customer_id: Account to fetch data from.

    Returns:
        CSV text with a header row containing column names.

    Raises:
        TransportError: When data cannot be fetched from Ads API.
    """
    customer_id = self.resolve_customer_id(customer_id)
    logger.debug('Running query for customer_id %s', customer_id)
    return self._call(
      self._stream_to_csv,
      customer_id=customer_id,
      query_text=query_text,
      fields=fields,
    )

  def _stream_to_csv(
    self, customer_id: str, query_text: str, fields: Mapping[str, str]
  ) -> str:
    response = self.ads_service.search_stream(
      customer_id=customer_id, query=query_text
    )
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator='\n')
    writer.writerow(list(fields))
    n_rows = 0
    for batch in response:
      for row in batch.results:
        writer.writerow(
          [get_field_value(row, field) for field in fields.values()]
        )
        n_rows += 1
    logger.debug('Fetched %d rows for customer_id %s', n_rows, customer_id)
    return buffer.getvalue()


def get_field_value(row: Any, field: str) -> Any:
  """Extracts value of nested API field from GoogleAdsRow.

  Enums are converted to their names.
  """
  attributes = [
    'type_' if attribute == 'type' else attribute
    for attribute in field.split('.')
  ]
  value = functools.reduce(getattr, attributes, row)
  if isinstance(value, enum.Enum):
    return value.name
  return value
