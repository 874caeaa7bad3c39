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
from __future__ import annotations

import decimal

import pytest

from easyads import exceptions, keywords


@pytest.fixture
def builder(simulated_client):
  return keywords.KeywordBuilder(simulated_client)


@pytest.fixture
def keyword_config():
  return keywords.KeywordConfig(
    keyword='running shoes',
    match_type=keywords.MatchType.EXACT,
    ad_group_id=555,
    bid=2.50,
  )


class TestKeywordConfig:
  def test_init_converts_match_type_string_to_enum(self):
    config = keywords.KeywordConfig(keyword='shoes', match_type='phrase')
    assert config.match_type == keywords.MatchType.PHRASE

  def test_init_converts_status_string_to_enum(self):
    config = keywords.KeywordConfig(keyword='shoes', status='Paused')
    assert config.status == keywords.KeywordStatus.PAUSED

  def test_init_converts_final_urls_to_tuple(self):
    config = keywords.KeywordConfig(
      keyword='shoes', final_urls=['https://example.com']
    )
    assert config.final_urls == ('https://example.com',)

  def test_init_wraps_single_final_url(self):
    config = keywords.KeywordConfig(
      keyword='shoes', final_urls='https://example.com'
    )
    assert config.final_urls == ('https://example.com',)

  def test_init_raises_error_on_unknown_match_type(self):
    with pytest.raises(exceptions.ConfigurationError, match='MatchType'):
      keywords.KeywordConfig(keyword='shoes', match_type='fuzzy')

  def test_default_values_are_empty(self):
    config = keywords.KeywordConfig(keyword='shoes')
    assert config.match_type == keywords.MatchType.BROAD
    assert config.ad_group_id is None
    assert config.status is None
    assert config.final_urls is None
    assert config.bid is None


class TestToMicros:
  @pytest.mark.parametrize(
    'amount, expected',
    [
      (2.50, 2_500_000),
      ('2.50', 2_500_000),
      (1, 1_000_000),
      (0.1, 100_000),
      (19.99, 19_990_000),
      (decimal.Decimal('0.000001'), 1),
      ('123456.654321', 123_456_654_321),
      (
        '1234567890123456789012345.654321',
        1234567890123456789012345654321,
      ),
      (decimal.Decimal('2.5000000'), 2_500_000),
    ],
  )
  def test_to_micros_returns_exact_amount(self, amount, expected):
    assert keywords.to_micros(amount) == expected

  @pytest.mark.parametrize(
    'amount',
    [
      0,
      -1,
      '-0.5',
      'abc',
      '0.0000001',
      '1234567890123456789012345.6543211',
      float('inf'),
      'NaN',
    ],
  )
  def test_to_micros_raises_error_on_invalid_amount(self, amount):
    with pytest.raises(exceptions.ConfigurationError):
      keywords.to_micros(amount)


class TestKeywordBuilder:
  def test_build_add_operation_returns_operation_with_criterion(
    self, builder, keyword_config
  ):
    operation = builder.build_add_operation(keyword_config)

    assert operation.operator == keywords.Operator.ADD
    assert operation.operand.ad_group_id == 555
    assert operation.operand.criterion == keywords.KeywordCriterion(
      text='running shoes', match_type=keywords.MatchType.EXACT
    )

  def test_build_add_operation_converts_bid_to_micros(
    self, builder, keyword_config
  ):
    operation = builder.build_add_operation(keyword_config)

    assert operation.operand.bid.micro_amount == 2_500_000
    assert operation.operand.bidding_strategy_configuration == (
      keywords.BiddingStrategyConfiguration(
        bids=(keywords.CpcBid(bid=keywords.Money(micro_amount=2_500_000)),)
      )
    )

  def test_build_add_operation_without_ad_group_raises_error(self, builder):
    config = keywords.KeywordConfig(keyword='shoes', match_type='EXACT')

    with pytest.raises(exceptions.ConfigurationError, match='Ad group ID'):
      builder.build_add_operation(config)

  def test_build_add_operation_skips_missing_optional_fields(self, builder):
    config = keywords.KeywordConfig(keyword='shoes', ad_group_id=1)

    operation = builder.build_add_operation(config)

    assert operation.operand.user_status is None
    assert operation.operand.final_urls is None
    assert operation.operand.bidding_strategy_configuration is None
    assert operation.operand.bid is None

  def test_build_add_operation_sets_status_and_final_urls(self, builder):
    config = keywords.KeywordConfig(
      keyword='shoes',
      ad_group_id=1,
      status=keywords.KeywordStatus.PAUSED,
      final_urls=['https://example.com/shoes'],
    )

    operation = builder.build_add_operation(config)

    assert operation.operand.user_status == keywords.KeywordStatus.PAUSED
    assert operation.operand.final_urls == ('https://example.com/shoes',)

  def test_build_add_operation_ignores_empty_final_urls(self, builder):
    config = keywords.KeywordConfig(
      keyword='shoes', ad_group_id=1, final_urls=[]
    )

    operation = builder.build_add_operation(config)

    assert operation.operand.final_urls is None

  def test_build_add_operation_returns_equal_operations_for_same_config(
    self, builder, keyword_config
  ):
    first_operation = builder.build_add_operation(keyword_config)
    second_operation = builder.build_add_operation(keyword_config)

    assert first_operation == second_operation
    assert first_operation is not second_operation

  @pytest.mark.parametrize('bid', [0, 0.0, decimal.Decimal(0)])
  def test_build_add_operation_with_zero_bid_leaves_bidding_empty(
    self, builder, bid
  ):
    config = keywords.KeywordConfig(keyword='shoes', ad_group_id=1, bid=bid)

    operation = builder.build_add_operation(config)

    assert operation.operand.bidding_strategy_configuration is None

  def test_build_add_operation_raises_error_on_invalid_bid(self, builder):
    config = keywords.KeywordConfig(keyword='shoes', ad_group_id=1, bid=-2)

    with pytest.raises(exceptions.ConfigurationError):
      builder.build_add_operation(config)

  def test_build_add_operation_does_not_submit_operation(
    self, builder, keyword_config, simulated_client
  ):
    builder.build_add_operation(keyword_config)

    assert simulated_client.submitted_operations == []

  def test_submit_sends_operations_to_client(
    self, builder, keyword_config, simulated_client
  ):
    operation = builder.build_add_operation(keyword_config)

    resource_names = builder.submit([operation])

    assert resource_names == ['customers/1234567890/adGroupCriteria/555~1']
    assert simulated_client.submitted_operations == [operation]

  def test_submit_empty_operations_does_not_call_client(self, mocker):
    fake_client = mocker.MagicMock()
    builder = keywords.KeywordBuilder(fake_client)

    assert builder.submit([]) == []
    fake_client.mutate_criteria.assert_not_called()

  def test_submit_propagates_transport_error(self, mocker, keyword_config):
    fake_client = mocker.MagicMock()
    fake_client.mutate_criteria.side_effect = exceptions.TransportError('test')
    builder = keywords.KeywordBuilder(fake_client)
    operation = builder.build_add_operation(keyword_config)

    with pytest.raises(exceptions.TransportError):
      builder.submit([operation])

  def test_add_returns_resource_name_for_custom_customer_id(
    self, builder, keyword_config
  ):
    resource_name = builder.add(keyword_config, customer_id='111-222-3333')

    assert resource_name == 'customers/1112223333/adGroupCriteria/555~1'


class TestKeywordBatch:
  @pytest.fixture
  def batch(self, simulated_client):
    return keywords.KeywordBatch(simulated_client)

  def test_upload_submits_all_keywords_in_single_request(
    self, batch, mocker, simulated_client
  ):
    spy = mocker.spy(simulated_client, 'mutate_criteria')
    batch.extend(
      [
        keywords.KeywordConfig(keyword='shoes', ad_group_id=1),
        keywords.KeywordConfig(keyword='boots', ad_group_id=2, bid='1.2'),
      ]
    )

    resource_names = batch.upload()

    assert resource_names == [
      'customers/1234567890/adGroupCriteria/1~1',
      'customers/1234567890/adGroupCriteria/2~2',
    ]
    spy.assert_called_once()
    assert len(batch) == 0

  def test_upload_empty_batch_returns_empty_list(self, batch, simulated_client):
    assert batch.upload() == []
    assert simulated_client.submitted_operations == []

  def test_upload_with_invalid_keyword_does_not_submit_anything(
    self, batch, simulated_client
  ):
    batch.append(keywords.KeywordConfig(keyword='shoes', ad_group_id=1))
    batch.append(keywords.KeywordConfig(keyword='boots'))

    with pytest.raises(exceptions.ConfigurationError):
      batch.upload()
    assert simulated_client.submitted_operations == []
    assert len(batch) == 2

  def test_build_operations_preserves_order(self, batch):
    batch.append(keywords.KeywordConfig(keyword='shoes', ad_group_id=1))
    batch.append(keywords.KeywordConfig(keyword='boots', ad_group_id=1))

    operations = batch.build_operations()

    assert [operation.operand.criterion.text for operation in operations] == [
      'shoes',
      'boots',
    ]
