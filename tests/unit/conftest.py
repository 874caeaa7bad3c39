from __future__ import annotations

import pytest
import yaml

from easyads import api_clients, config, simulation


@pytest.fixture
def config_path(tmp_path):
  path = tmp_path / 'google-ads.yaml'
  path.write_text(
    yaml.dump(
      {
        'developer_token': 'fake-token',
        'client_id': 'fake-client-id',
        'client_secret': 'fake-client-secret',
        'refresh_token': 'fake-refresh-token',
        'login_customer_id': '987-654-3210',
        'easyads': {
          'customer_id': '123-456-7890',
          'max_attempts': 3,
        },
      }
    ),
    encoding='utf-8',
  )
  return str(path)


@pytest.fixture
def fake_ads_client(mocker):
  ads_client = mocker.MagicMock()
  ads_client.version = 'v17'
  return ads_client


@pytest.fixture
def authenticated_client(fake_ads_client):
  return api_clients.AuthenticatedClient(
    config.ClientConfig(customer_id='123-456-7890'),
    ads_client=fake_ads_client,
  )


@pytest.fixture
def simulated_client():
  return simulation.SimulatedClient(
    specification=simulation.SimulatorSpecification(n_rows=5, seed=42)
  )
