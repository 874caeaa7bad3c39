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

"""Builds keyword operations and submits them to Ads API.

Module exposes two classes:
    * KeywordBuilder - converts KeywordConfig into an immutable Operation
      and optionally submits operations via the client.
    * KeywordBatch - accumulates many keywords and submits them in a single
      request.
"""

from __future__ import annotations

import dataclasses
import decimal
import enum
import logging
from collections.abc import Iterable, Sequence
from typing import Union

from easyads import api_clients, exceptions

logger = logging.getLogger(__name__)

MICROS_MULTIPLIER = decimal.Decimal(1_000_000)

BidAmount = Union[decimal.Decimal, float, int, str]


class MatchType(enum.Enum):
  """Specifies how closely search query should match keyword text."""

  EXACT = 'EXACT'
  PHRASE = 'PHRASE'
  BROAD = 'BROAD'


class KeywordStatus(enum.Enum):
  """Status set by the user for a keyword."""

  ENABLED = 'ENABLED'
  PAUSED = 'PAUSED'
  REMOVED = 'REMOVED'


class Operator(enum.Enum):
  """Action performed by an operation."""

  ADD = 'ADD'


def _to_enum(enum_class: type[enum.Enum], value: enum.Enum | str):
  if isinstance(value, enum_class):
    return value
  try:
    return enum_class[str(value).upper()]
  except KeyError as e:
    raise exceptions.ConfigurationError(
      f'Unsupported {enum_class.__name__}: {value}, '
      f'supported values: {", ".join(enum_class.__members__)}'
    ) from e


@dataclasses.dataclass(frozen=True)
class KeywordConfig:
  """Describes a single keyword that should be created.

  Attributes:
      keyword: Keyword text.
      match_type: Keyword match type.
      ad_group_id: Ad group keyword belongs to.
      status: Status of the keyword, Ads API default when omitted.
      final_urls: Landing pages of the keyword.
      bid: Max CPC in account currency units, ad group bid when omitted
          or zero.
  """

  keyword: str
  match_type: MatchType | str = MatchType.BROAD
  ad_group_id: int | str | None = None
  status: KeywordStatus | str | None = None
  final_urls: Sequence[str] | None = None
  bid: BidAmount | None = None

  def __post_init__(self) -> None:
    """Ensures that values passed during __init__ correctly formatted."""
    object.__setattr__(self, 'match_type', _to_enum(MatchType, self.match_type))
    if self.status is not None:
      object.__setattr__(self, 'status', _to_enum(KeywordStatus, self.status))
    if self.final_urls is not None:
      if isinstance(self.final_urls, str):
        final_urls = (self.final_urls,)
      else:
        final_urls = tuple(self.final_urls)
      object.__setattr__(self, 'final_urls', final_urls)


@dataclasses.dataclass(frozen=True)
class Money:
  micro_amount: int


@dataclasses.dataclass(frozen=True)
class CpcBid:
  bid: Money


@dataclasses.dataclass(frozen=True)
class BiddingStrategyConfiguration:
  bids: tuple[CpcBid, ...]


@dataclasses.dataclass(frozen=True)
class KeywordCriterion:
  text: str
  match_type: MatchType


@dataclasses.dataclass(frozen=True)
class BiddableAdGroupCriterion:
  """Keyword criterion alongside ad group level settings."""

  ad_group_id: int | str
  criterion: KeywordCriterion
  user_status: KeywordStatus | None = None
  final_urls: tuple[str, ...] | None = None
  bidding_strategy_configuration: BiddingStrategyConfiguration | None = None

  @property
  def bid(self) -> Money | None:
    """Money of the first CPC bid if bidding is configured."""
    if not self.bidding_strategy_configuration:
      return None
    return self.bidding_strategy_configuration.bids[0].bid


@dataclasses.dataclass(frozen=True)
class Operation:
  """Intended change that should be applied by Ads API.

  Attributes:
      operand: Criterion the change is applied to.
      operator: Type of the change.
  """

  operand: BiddableAdGroupCriterion
  operator: Operator = Operator.ADD


def to_micros(amount: BidAmount) -> int:
  """Converts currency amount into micros.

  Args:
      amount: Positive amount with up to 6 fractional digits.

  Returns:
      Amount multiplied by 1 000 000.

  Raises:
      ConfigurationError: When amount is not positive number or too precise.
  """
  try:
    value = decimal.Decimal(str(amount))
  except decimal.InvalidOperation as e:
    raise exceptions.ConfigurationError(f'Invalid bid amount: {amount}') from e
  if not value.is_finite() or value <= 0:
    raise exceptions.ConfigurationError(
      f'Bid amount should be positive, got {amount}'
    )
  with decimal.localcontext() as context:
    context.prec = max(context.prec, len(value.as_tuple().digits) + 7)
    micros = value * MICROS_MULTIPLIER
    if micros != micros.to_integral_value():
      raise exceptions.ConfigurationError(
        f'Bid amount {amount} has more than 6 fractional digits'
      )
  return int(micros)


def build_bidding_configuration(
  amount: BidAmount,
) -> BiddingStrategyConfiguration:
  """Creates bidding strategy configuration with a single CPC bid."""
  return BiddingStrategyConfiguration(
    bids=(CpcBid(bid=Money(micro_amount=to_micros(amount))),)
  )


class KeywordBuilder:
  """Builds keyword operations and submits them to Ads API.

  Attributes:
      client: Client used to submit operations.
  """

  def __init__(self, client: api_clients.BaseClient) -> None:
    self.client = client

  def build_add_operation(self, config: KeywordConfig) -> Operation:
    """Creates an operation for adding keyword based on the config.

    Args:
        config: Keyword that should be added.

    Returns:
        Operation with biddable ad group criterion.

    Raises:
        ConfigurationError: When ad group ID is missing or bid is invalid.
    """
    if not config.ad_group_id:
      raise exceptions.ConfigurationError(
        'Ad group ID must be set in the config object '
        'in order to create a keyword.'
      )
    criterion = BiddableAdGroupCriterion(
      ad_group_id=config.ad_group_id,
      criterion=KeywordCriterion(
        text=config.keyword, match_type=config.match_type
      ),
      user_status=config.status,
      final_urls=config.final_urls or None,
      bidding_strategy_configuration=(
        build_bidding_configuration(config.bid) if config.bid else None
      ),
    )
    return Operation(operand=criterion, operator=Operator.ADD)

  def submit(
    self, operations: Sequence[Operation], customer_id: str | None = None
  ) -> list[str]:
    """Sends operations to Ads API.

    Args:
        operations: Operations built by `build_add_operation`.
        customer_id: Account to apply operations to, client default if omitted.

    Returns:
        Resource names of created keywords.

    Raises:
        TransportError: When Ads API rejected the operations.
    """
    if not operations:
      return []
    resource_names = self.client.mutate_criteria(
      operations, customer_id=customer_id
    )
    logger.info('Added %d keyword(s)', len(resource_names))
    return resource_names

  def add(self, config: KeywordConfig, customer_id: str | None = None) -> str:
    """Builds and submits a single keyword.

    Returns:
        Resource name of created keyword.
    """
    operation = self.build_add_operation(config)
    resource_name, *_ = self.submit([operation], customer_id=customer_id)
    return resource_name


class KeywordBatch:
  """Accumulates keywords and uploads them in a single request.

  Attributes:
      builder: Builder used to convert configs into operations.
      configs: Keywords waiting for upload.
  """

  def __init__(self, client: api_clients.BaseClient) -> None:
    self.builder = KeywordBuilder(client)
    self.configs: list[KeywordConfig] = []

  def __len__(self) -> int:
    return len(self.configs)

  def append(self, config: KeywordConfig) -> None:
    self.configs.append(config)

  def extend(self, configs: Iterable[KeywordConfig]) -> None:
    self.configs.extend(configs)

  def build_operations(self) -> list[Operation]:
    """Converts all accumulated keywords into operations.

    Raises:
        ConfigurationError: When any of the keywords is invalid.
    """
    return [self.builder.build_add_operation(config) for config in self.configs]

  def upload(self, customer_id: str | None = None) -> list[str]:
    """Submits all accumulated keywords and empties the batch.

    Returns:
        Resource names of created keywords.
    """
    if not self.configs:
      logger.warning('Keyword batch is empty, nothing to upload')
      return []
    operations = self.build_operations()
    resource_names = self.builder.submit(operations, customer_id=customer_id)
    self.configs = []
    return resource_names
