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

"""Module for simulating Ads API without network access.

SimulatedClient can be passed anywhere AuthenticatedClient is expected;
reports contain fake values generated based on API field names and
submitted operations are recorded instead of being sent.
"""

from __future__ import annotations

import csv
import dataclasses
import io
import logging
import random
from collections.abc import Mapping, Sequence
from typing import Any

import faker

from easyads import api_clients

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class SimulatorSpecification:
  """Specifies meta information for simulated results.

  Attributes:
      n_rows: Number of rows in each simulated report.
      days_ago: Earliest date for date fields in Faker notation.
      string_length: Length of random strings.
      seed: Seed that makes simulated data reproducible.
  """

  n_rows: int = 10
  days_ago: str = '-7d'
  string_length: int = 3
  seed: int | None = None


class SimulatedClient(api_clients.BaseClient):
  """Client returning simulated data.

  Attributes:
      specification: Meta information for simulated results.
      submitted_operations: All operations passed to mutate_criteria.
  """

  def __init__(
    self,
    customer_id: str | None = '1234567890',
    specification: SimulatorSpecification | None = None,
  ) -> None:
    super().__init__(customer_id=customer_id)
    self.specification = specification or SimulatorSpecification()
    self.submitted_operations: list[Any] = []
    self._random = random.Random(self.specification.seed)
    self._faker = faker.Faker()
    if self.specification.seed is not None:
      self._faker.seed_instance(self.specification.seed)

  def mutate_criteria(
    self, operations: Sequence[Any], customer_id: str | None = None
  ) -> list[str]:
    customer_id = self.resolve_customer_id(customer_id)
    resource_names = []
    for operation in operations:
      self.submitted_operations.append(operation)
      resource_names.append(
        f'customers/{customer_id}/adGroupCriteria/'
        f'{operation.operand.ad_group_id}~{len(self.submitted_operations)}'
      )
    logger.debug('Simulated %d criterion operations', len(operations))
    return resource_names

  def download_report(
    self,
    query_text: str,
    fields: Mapping[str, str],
    customer_id: str | None = None,
  ) -> str:
    self.resolve_customer_id(customer_id)
    logger.debug('Simulating response for query: %s', query_text)
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator='\n')
    writer.writerow(list(fields))
    for _ in range(self.specification.n_rows):
      writer.writerow(
        [self._generate_value(field) for field in fields.values()]
      )
    return buffer.getvalue()

  def _generate_value(self, field: str) -> str | int | float:
    """Generates random value based on API field name."""
    if field == 'segments.date':
      return self._faker.date_between(self.specification.days_ago).strftime(
        '%Y-%m-%d'
      )
    if field.endswith(('.id', '_id')):
      return self._random.randint(1000000, 1000010)
    if field.endswith('status'):
      return self._random.choice(['ENABLED', 'PAUSED'])
    if field.endswith('match_type'):
      return self._random.choice(['EXACT', 'PHRASE', 'BROAD'])
    if 'micros' in field:
      return self._random.randint(0, 1000) * 1_000_000
    if field in ('metrics.ctr', 'metrics.average_cpc', 'metrics.conversions'):
      return round(self._random.uniform(0, 100), 2)
    if field.startswith('metrics.'):
      return self._random.randint(0, 1000)
    if field.endswith('keyword.text'):
      return ' '.join(self._faker.words(2))
    return ''.join(
      self._random.choice('abcdefghijklmnopqrstuvwxyz')
      for _ in range(self.specification.string_length)
    )
