import asyncio
import json
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

import session
from api import app
from api.deps import (
    get_geocoder, get_optional_writer, get_reader_factory, get_storage, get_writer
)
from auth import HostedServiceError
from contract import ContractReader, ContractWriter, ExecutionResult, encode_wide
from ranking import Coordinates, StaticGeocoder
from rpc import NodeConnectionError
from session import MemoryStorage, SessionUser
from tests.fakes import (
    ADMIN_WALLET, CONTRACT_ADDRESS, WALLET, FakeExecutor, array_felts, report_felts, store_felts
)

AUTH_HEADERS = {'Authorization': 'Bearer token-1', 'X-Wallet-Address': WALLET}
ADMIN_HEADERS = {'Authorization': 'Bearer token-1', 'X-Wallet-Address': ADMIN_WALLET}

PRICES = {1: 158000, 2: 150000, 3: 171000}
NAMES = {1: "Carrefour Hipermercado Pilar", 2: "Sin ubicacion", 3: "Supermercado Enor"}


@pytest.fixture
def seeded_node(node):
    stores = {i: store_felts(i, NAMES[i], f"Calle {i}", PRICES[i]) for i in PRICES}
    node.respond('get_all_stores', array_felts(list(stores.values())))
    for i, felts in stores.items():
        node.respond('get_store', felts, calldata=[str(i)])
    node.respond('get_thanks_count', ['3'])
    node.respond('get_reports', array_felts([report_felts(1, "Sin stock", 1700000000, 0xabc)]))
    node.respond('get_all_current_prices', array_felts([
        [str(i), *encode_wide(price), '1700000000'] for i, price in PRICES.items()
    ]))
    node.respond('get_price_history', array_felts([[*encode_wide(140000), '1600000000']]))
    node.respond('has_user_thanked', ['1'])
    node.respond('is_admin', ['1'], calldata=[str(int(ADMIN_WALLET, 16))])
    node.respond('is_admin', ['0'])
    return node


@pytest.fixture
def client(seeded_node, executor, storage, monkeypatch):
    monkeypatch.setenv('CAVOS_ORG_SECRET', 'org-secret')
    monkeypatch.setenv('CAVOS_APP_ID', 'app-1')
    writer = ContractWriter(executor, contract_address=CONTRACT_ADDRESS)

    def factory(network):
        return ContractReader(network, CONTRACT_ADDRESS, client=seeded_node)

    app.dependency_overrides[get_reader_factory] = lambda: factory
    app.dependency_overrides[get_writer] = lambda: writer
    app.dependency_overrides[get_optional_writer] = lambda: writer
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_geocoder] = lambda: StaticGeocoder()
    yield TestClient(app)
    app.dependency_overrides.clear()


def hosted_client(**methods):
    hosted = MagicMock()
    for name, value in methods.items():
        if isinstance(value, Exception):
            getattr(hosted, name).side_effect = value
        else:
            getattr(hosted, name).return_value = value
    return hosted


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()['status'] == "running"


def test_list_stores_by_price(client):
    response = client.get("/stores/")

    assert response.status_code == 200
    stores = response.json()
    assert [s['id'] for s in stores] == ['2', '1', '3']
    assert stores[0]['price_display']['formatted_price'] == "$1.500"
    assert [s['price_difference_from_cheapest'] for s in stores] == [0, 8000, 21000]
    assert stores[1]['URI'] == "maps/abc"
    assert stores[0]['thanks_count'] == 3
    assert stores[0]['distance'] is None


def test_list_stores_by_distance(client):
    response = client.get(
        "/stores/", params={'sort': 'distance', 'lat': -34.457228, 'lng': -58.9104137}
    )

    assert response.status_code == 200
    stores = response.json()
    assert [s['id'] for s in stores] == ['3', '1', '2']
    assert stores[0]['distance'] == 0.0
    assert stores[2]['distance'] is None


def test_list_stores_requires_both_coordinates(client):
    response = client.get("/stores/", params={'lat': -34.4})
    assert response.status_code == 400


def test_list_stores_rejects_network(client):
    response = client.get("/stores/", params={'network': 'polygon'})
    assert response.status_code == 400


def test_list_stores_node_down(client, seeded_node):
    seeded_node.respond('get_all_stores', NodeConnectionError("Failed to connect"))

    response = client.get("/stores/")

    assert response.status_code == 502


def test_preview(client):
    response = client.get("/stores/preview")

    assert response.status_code == 200
    assert [item['store']['id'] for item in response.json()] == ['2', '1']


def test_get_store(client):
    response = client.get("/stores/2")

    assert response.status_code == 200
    body = response.json()
    assert body['name'] == "Sin ubicacion"
    assert body['thanks_count'] == 3
    assert body['reports'][0]['submitted_by'] == "0xabc"


def test_get_store_bad_id(client):
    response = client.get("/stores/abc")
    assert response.status_code == 400


def test_price_history(client):
    response = client.get("/stores/1/prices")

    assert response.status_code == 200
    assert response.json() == [{'price': '140000', 'timestamp': 1600000000}]


def test_reports(client):
    response = client.get("/stores/1/reports")

    assert response.status_code == 200
    assert response.json()[0]['description'] == "Sin stock"


def test_thanked(client):
    response = client.get("/stores/1/thanked", headers=AUTH_HEADERS)

    assert response.status_code == 200
    assert response.json() == {'store_id': '1', 'thanked': True}


def test_thanks_requires_token(client, executor):
    response = client.post("/stores/1/thanks", headers={'X-Wallet-Address': WALLET})

    assert response.status_code in (401, 403)
    assert executor.submissions == []


def test_thanks_requires_wallet(client, executor):
    response = client.post("/stores/1/thanks", headers={'Authorization': 'Bearer token-1'})

    assert response.status_code == 401
    assert executor.submissions == []


def test_give_thanks_refreshes_session(client, executor, storage):
    session.save(storage, SessionUser(access_token='token-1', wallet_address=WALLET))

    response = client.post("/stores/1/thanks", headers=AUTH_HEADERS)

    assert response.status_code == 200
    assert response.json()['access_token'] == 'refreshed-token'
    assert executor.entrypoints == ['give_thanks']
    assert session.load(storage, WALLET).access_token == 'refreshed-token'


def test_submit_report_too_long(client, executor):
    response = client.post(
        "/stores/1/reports", headers=AUTH_HEADERS, json={'description': 'x' * 32}
    )

    assert response.status_code == 400
    assert executor.submissions == []


def test_submit_report(client, executor):
    response = client.post(
        "/stores/1/reports", headers=AUTH_HEADERS, json={'description': 'Sin stock'}
    )

    assert response.status_code == 200
    assert executor.entrypoints == ['submit_report']


def test_write_failure(client, executor):
    executor.failures = 1

    response = client.post("/stores/1/thanks", headers=AUTH_HEADERS)

    assert response.status_code == 500
    assert response.json()['detail'].startswith("Transaction failed")


def test_admin_status(client):
    assert client.get("/admin/status", headers=ADMIN_HEADERS).json()['is_admin'] is True
    assert client.get("/admin/status", headers=AUTH_HEADERS).json()['is_admin'] is False


def test_update_price_requires_admin(client, executor):
    response = client.put(
        "/admin/stores/1/price", headers=AUTH_HEADERS, json={'price_in_cents': 150000}
    )

    assert response.status_code == 403
    assert executor.submissions == []


def test_update_price(client, executor):
    response = client.put(
        "/admin/stores/1/price", headers=ADMIN_HEADERS, json={'price': '1500.50'}
    )

    assert response.status_code == 200
    assert executor.submissions[0]['calls'][0].calldata == ['1', '150050', '0']


def test_update_price_falls_back(client, executor):
    executor.failures = 1

    response = client.put(
        "/admin/stores/1/price", headers=ADMIN_HEADERS, json={'price_in_cents': 150000}
    )

    assert response.status_code == 200
    assert [s['calls'][0].calldata for s in executor.submissions] == [
        ['1', '150000', '0'], ['1', '150000']
    ]


def test_update_price_missing_amount(client, executor):
    response = client.put("/admin/stores/1/price", headers=ADMIN_HEADERS, json={})

    assert response.status_code == 400
    assert executor.submissions == []


def test_add_store(client, executor):
    response = client.post(
        "/admin/stores", headers=ADMIN_HEADERS,
        json={'name': 'Kiosco', 'address': 'Calle 9', 'URI': 'maps/k'}
    )

    assert response.status_code == 200
    assert executor.entrypoints == ['add_store']


def test_sign_in_rejects_network_before_calling_service(client, storage):
    with patch('api.auth.get_hosted_client') as get_hosted:
        response = client.post("/api/v1/auth/signIn", json={
            'email': 'a@b.co', 'password': 'secret123', 'network': 'polygon'
        })

    assert response.status_code == 400
    assert response.json()['detail'] == "Invalid network. Must be one of: sepolia, mainnet"
    get_hosted.assert_not_called()
    assert session.load(storage, WALLET) is None


def test_sign_in_missing_fields(client):
    response = client.post("/api/v1/auth/signIn", json={'email': 'a@b.co'})

    assert response.status_code == 400
    assert response.json()['detail'] == "Missing required fields: email, password, network"


def test_sign_in_missing_secret(client, monkeypatch):
    monkeypatch.delenv('CAVOS_ORG_SECRET')

    response = client.post("/api/v1/auth/signIn", json={
        'email': 'a@b.co', 'password': 'secret123', 'network': 'sepolia'
    })

    assert response.status_code == 500


def test_sign_in(client, storage):
    hosted = hosted_client(sign_in={
        'access_token': 'tok', 'wallet_address': WALLET, 'email': 'a@b.co'
    })
    with patch('api.auth.get_hosted_client', return_value=hosted):
        response = client.post("/api/v1/auth/signIn", json={
            'email': 'a@b.co', 'password': 'secret123', 'network': 'mainnet'
        })

    assert response.status_code == 200
    assert response.json()['wallet_address'] == WALLET
    hosted.sign_in.assert_called_once_with('a@b.co', 'secret123', 'mainnet', 'org-secret')
    assert session.load(storage, WALLET) == SessionUser(
        access_token='tok', wallet_address=WALLET, network='mainnet'
    )


def test_sign_in_rejected(client, storage):
    hosted = hosted_client(sign_in=HostedServiceError("Invalid credentials", 401))
    with patch('api.auth.get_hosted_client', return_value=hosted):
        response = client.post("/api/v1/auth/signIn", json={
            'email': 'a@b.co', 'password': 'secret123', 'network': 'sepolia'
        })

    assert response.status_code == 401
    assert response.json()['detail'] == "Login failed: Invalid credentials"
    assert session.load(storage, WALLET) is None


def test_sign_up_short_password(client):
    with patch('api.auth.get_hosted_client') as get_hosted:
        response = client.post("/api/v1/auth/signUp", json={
            'email': 'a@b.co', 'password': 'short', 'network': 'sepolia'
        })

    assert response.status_code == 400
    get_hosted.assert_not_called()


def test_sign_up(client):
    hosted = hosted_client(sign_up={'email': 'a@b.co', 'wallet_address': WALLET, 'created_at': None})
    with patch('api.auth.get_hosted_client', return_value=hosted):
        response = client.post("/api/v1/auth/signUp", json={
            'email': 'a@b.co', 'password': 'secret123', 'network': 'sepolia'
        })

    assert response.status_code == 200
    assert response.json()['data']['wallet_address'] == WALLET


def test_execute_invalid_call(client):
    response = client.post("/api/v1/execute", json={
        'walletAddress': WALLET, 'network': 'sepolia', 'accessToken': 'tok',
        'calls': [{'contractAddress': '0x1', 'entrypoint': 'give_thanks'}]
    })

    assert response.status_code == 400
    assert "index 0" in response.json()['detail']


def test_execute(client):
    hosted = hosted_client(execute_calls=ExecutionResult(tx_hash='0xbeef', access_token='fresh'))
    with patch('api.auth.get_hosted_client', return_value=hosted):
        response = client.post("/api/v1/execute", json={
            'walletAddress': WALLET, 'network': 'sepolia', 'accessToken': 'tok',
            'calls': [{'contractAddress': '0x1', 'entrypoint': 'give_thanks', 'calldata': [7]}]
        })

    assert response.status_code == 200
    assert response.json()['data'] == {'txHash': '0xbeef', 'accessToken': 'fresh'}
    calls = hosted.execute_calls.call_args[0][3]
    assert calls[0].calldata == ['7']


def test_callback_error(client):
    response = client.get("/auth/callback", params={'error': 'access_denied'})

    assert response.status_code == 400
    assert response.json()['detail'] == "Authentication failed: access_denied"


def test_callback_missing_data(client):
    assert client.get("/auth/callback").status_code == 400


def test_callback_bad_data(client, storage):
    response = client.get("/auth/callback", params={'user_data': '{"wallet": {}}'})

    assert response.status_code == 400
    assert session.load(storage, WALLET) is None


def callback_data(network='sepolia'):
    return json.dumps({
        'authData': {'accessToken': 'tok'},
        'wallet': {'address': WALLET, 'network': network}
    })


def test_callback_saves_session_and_touches(client, storage, executor):
    response = client.get("/auth/callback", params={'user_data': callback_data()})

    assert response.status_code == 200
    assert session.load(storage, WALLET).access_token == 'tok'
    assert executor.entrypoints == ['update_last_connected']


def test_callback_survives_touch_failure(client, storage, executor):
    executor.failures = 1

    response = client.get("/auth/callback", params={'user_data': callback_data()})

    assert response.status_code == 200
    assert session.load(storage, WALLET) is not None


def test_session_for_caller(client, storage):
    assert client.get("/session", headers=AUTH_HEADERS).status_code == 404

    session.save(storage, SessionUser(access_token='token-1', wallet_address=WALLET))
    assert client.get("/session", headers=AUTH_HEADERS).json()['wallet_address'] == WALLET

    assert client.delete("/session", headers=AUTH_HEADERS).json() == {'success': True}
    assert session.load(storage, WALLET) is None


def test_session_requires_credentials(client, storage):
    session.save(storage, SessionUser(access_token='secret-token', wallet_address=WALLET))

    assert client.get("/session").status_code in (401, 403)
    assert client.delete("/session").status_code in (401, 403)
    assert client.get("/session", headers={'X-Wallet-Address': WALLET}).status_code in (401, 403)
    assert session.load(storage, WALLET).access_token == 'secret-token'


def test_session_not_readable_by_other_wallet(client, storage):
    session.save(storage, SessionUser(access_token='token-1', wallet_address=WALLET))
    other = {'Authorization': 'Bearer token-1', 'X-Wallet-Address': ADMIN_WALLET}

    response = client.get("/session", headers=other)

    assert response.status_code == 404
    assert 'token-1' not in response.text


def test_session_requires_matching_token(client, storage):
    session.save(storage, SessionUser(access_token='secret-token', wallet_address=WALLET))

    assert client.get("/session", headers=AUTH_HEADERS).status_code == 404
    assert client.delete("/session", headers=AUTH_HEADERS).status_code == 404
    assert session.load(storage, WALLET).access_token == 'secret-token'


def test_sign_ins_keep_separate_sessions(client, storage):
    for wallet, token in ((WALLET, 'tok-a'), (ADMIN_WALLET, 'tok-b')):
        data = json.dumps({'authData': {'accessToken': token}, 'wallet': {'address': wallet}})
        assert client.get("/auth/callback", params={'user_data': data}).status_code == 200

    assert session.load(storage, WALLET).access_token == 'tok-a'
    assert session.load(storage, ADMIN_WALLET).access_token == 'tok-b'


class LoopCheckingStorage(MemoryStorage):
    """Records whether each storage call ran on an event loop thread."""

    def __init__(self):
        super().__init__()
        self.on_loop = []

    def _record(self):
        try:
            asyncio.get_running_loop()
            self.on_loop.append(True)
        except RuntimeError:
            self.on_loop.append(False)

    def get_item(self, key):
        self._record()
        return super().get_item(key)

    def set_item(self, key, value):
        self._record()
        super().set_item(key, value)

    def remove_item(self, key):
        self._record()
        super().remove_item(key)


def test_storage_runs_off_event_loop(client):
    storage = LoopCheckingStorage()
    app.dependency_overrides[get_storage] = lambda: storage

    client.get("/auth/callback", params={'user_data': callback_data()})
    client.post("/stores/1/thanks", headers={**AUTH_HEADERS, 'Authorization': 'Bearer tok'})
    client.get("/session", headers=AUTH_HEADERS)
    client.delete("/session", headers=AUTH_HEADERS)

    assert storage.on_loop
    assert not any(storage.on_loop)


def test_health(client):
    node = MagicMock()
    node.starknet_blockNumber.return_value = 123
    with patch('api.system.get_client', return_value=node):
        response = client.get("/system/health")

    assert response.status_code == 200
    assert response.json()['status'] == "healthy"
    assert response.json()['block_number'] == 123


def test_health_degraded(client):
    node = MagicMock()
    node.starknet_blockNumber.side_effect = NodeConnectionError("Failed to connect")
    with patch('api.system.get_client', return_value=node):
        response = client.get("/system/health")

    assert response.json()['status'] == "degraded"
    assert response.json()['block_number'] is None


def test_execute_accepts_empty_calls(client):
    hosted = hosted_client(execute_calls=ExecutionResult(tx_hash='0xbeef', access_token='fresh'))
    with patch('api.auth.get_hosted_client', return_value=hosted):
        response = client.post("/api/v1/execute", json={
            'walletAddress': WALLET, 'network': 'sepolia', 'accessToken': 'tok', 'calls': []
        })

    assert response.status_code == 200
    assert hosted.execute_calls.call_args[0][3] == []


def test_execute_missing_calls(client):
    response = client.post("/api/v1/execute", json={
        'walletAddress': WALLET, 'network': 'sepolia', 'accessToken': 'tok'
    })

    assert response.status_code == 400
    assert response.json()['detail'].startswith("Missing required fields")


def test_listed_prices_carry_age(client):
    stores = client.get("/stores/").json()
    preview = client.get("/stores/preview").json()

    for display in [s['price_display'] for s in stores] + [p['price'] for p in preview]:
        assert display['relative_time'].startswith("Hace ")
        assert display['is_old'] is True
