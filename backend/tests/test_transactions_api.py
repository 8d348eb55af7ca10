import pytest


def test_create_clean_transaction(client, store, transaction_payload):
    response = client.post('/api/transactions', json=transaction_payload())
    assert response.status_code == 200
    data = response.json()

    assert data['transactionId'] == 'TXN-0001'
    assert data['mlScore'] == pytest.approx(0.1)
    assert data['riskLevel'] == 'LOW'
    assert data['status'] == 'PROCESSED'
    assert data['alertGenerated'] is False
    assert data['reviewStatus'] == 'PENDING'
    assert data['timeOfDay'] == 14
    assert set(data['shapExplanation']) == {'amount', 'velocity', 'time', 'geo', 'device', 'identity'}
    assert store.list_alerts() == []


def test_high_value_transaction_creates_alert(client, store, transaction_payload):
    response = client.post('/api/transactions', json=transaction_payload(amount=15000, transactionVelocity=0))
    assert response.status_code == 200
    data = response.json()

    assert data['highValueFlag'] is True
    assert data['riskLevel'] == 'MEDIUM'
    assert data['status'] == 'FLAGGED'
    assert data['alertGenerated'] is True

    alerts = store.list_alerts()
    assert len(alerts) == 1
    assert alerts[0].transaction_id == data['id']
    assert alerts[0].priority == 'MEDIUM'
    assert alerts[0].description == 'High-value transaction: $15,000.00'
    assert alerts[0].details['flags']['high_value'] is True


def test_single_endpoint_accepts_snake_case(client):
    payload = {
        'transaction_id': 'TXN-SNAKE',
        'account_id': 'ACC-9',
        'amount': 75.5,
        'timestamp': '2024-03-01T02:30:00',
        'phone_verified': True,
        'social_profile_presence': True,
    }
    response = client.post('/api/transactions/single', json=payload)
    assert response.status_code == 200
    data = response.json()
    assert data['transactionId'] == 'TXN-SNAKE'
    assert data['timeOfDay'] == 2
    # Night-time bump only
    assert data['mlScore'] == pytest.approx(0.2)


def test_duplicate_transaction_is_rejected(client, transaction_payload):
    assert client.post('/api/transactions', json=transaction_payload()).status_code == 200
    response = client.post('/api/transactions', json=transaction_payload())
    assert response.status_code == 409
    assert 'already exists' in response.json()['detail']


@pytest.mark.parametrize('missing', ['transactionId', 'accountId', 'amount', 'timestamp'])
def test_missing_required_field_is_rejected(client, transaction_payload, missing):
    payload = transaction_payload()
    payload.pop(missing)
    response = client.post('/api/transactions', json=payload)
    assert response.status_code == 422


def test_negative_amount_is_rejected(client, transaction_payload):
    response = client.post('/api/transactions', json=transaction_payload(amount=-5))
    assert response.status_code == 422


def test_structuring_detected_from_stored_history(client, transaction_payload):
    for index, hour in enumerate((8, 10, 12), start=1):
        response = client.post(
            '/api/transactions',
            json=transaction_payload(
                transactionId=f'TXN-S{index}',
                accountId='ACC-STRUCT',
                amount=9400 + index * 100,
                timestamp=f'2024-03-01T{hour:02d}:00:00Z',
            ),
        )
        assert response.status_code == 200
        assert response.json()['structuringFlag'] is False

    response = client.post(
        '/api/transactions',
        json=transaction_payload(
            transactionId='TXN-S4',
            accountId='ACC-STRUCT',
            amount=9900,
            timestamp='2024-03-01T15:00:00Z',
        ),
    )
    data = response.json()
    assert data['structuringFlag'] is True
    assert data['mlScore'] == pytest.approx(0.9)
    assert data['riskLevel'] == 'MEDIUM'
    assert data['status'] == 'FLAGGED'


def test_structuring_ignores_transactions_outside_window(client, transaction_payload):
    for index in range(1, 4):
        client.post(
            '/api/transactions',
            json=transaction_payload(
                transactionId=f'TXN-OLD{index}',
                accountId='ACC-OLD',
                amount=9500,
                timestamp=f'2024-03-01T0{index}:00:00Z',
            ),
        )

    response = client.post(
        '/api/transactions',
        json=transaction_payload(
            transactionId='TXN-NEW',
            accountId='ACC-OLD',
            amount=9500,
            timestamp='2024-03-03T12:00:00Z',
        ),
    )
    assert response.json()['structuringFlag'] is False


def test_list_transactions_with_filters(client, transaction_payload):
    client.post('/api/transactions', json=transaction_payload(transactionId='TXN-A', accountId='ACC-ALPHA'))
    client.post(
        '/api/transactions',
        json=transaction_payload(transactionId='TXN-B', accountId='ACC-BETA', geoVelocity=900),
    )

    everything = client.get('/api/transactions').json()
    assert {item['transactionId'] for item in everything} == {'TXN-A', 'TXN-B'}

    high = client.get('/api/transactions', params={'riskLevel': 'HIGH'}).json()
    assert [item['transactionId'] for item in high] == ['TXN-B']

    flagged = client.get('/api/transactions', params={'status': 'FLAGGED'}).json()
    assert [item['transactionId'] for item in flagged] == ['TXN-B']

    searched = client.get('/api/transactions', params={'search': 'alpha'}).json()
    assert [item['transactionId'] for item in searched] == ['TXN-A']

    paged = client.get('/api/transactions', params={'limit': 1}).json()
    assert len(paged) == 1


def test_flagged_and_risk_level_endpoints(client, transaction_payload):
    client.post('/api/transactions', json=transaction_payload(transactionId='TXN-LOW'))
    client.post('/api/transactions', json=transaction_payload(transactionId='TXN-HV', amount=25000))

    flagged = client.get('/api/transactions/flagged').json()
    assert [item['transactionId'] for item in flagged] == ['TXN-HV']

    medium = client.get('/api/transactions/risk/medium').json()
    assert [item['transactionId'] for item in medium] == ['TXN-HV']

    assert client.get('/api/transactions/risk/extreme').status_code == 400


def test_get_and_review_transaction(client, transaction_payload):
    created = client.post('/api/transactions', json=transaction_payload()).json()

    fetched = client.get(f"/api/transactions/{created['id']}")
    assert fetched.status_code == 200
    assert fetched.json()['transactionId'] == 'TXN-0001'

    reviewed = client.patch(f"/api/transactions/{created['id']}/review", json={'reviewStatus': 'APPROVED'})
    assert reviewed.status_code == 200
    assert reviewed.json()['reviewStatus'] == 'APPROVED'

    assert client.get('/api/transactions/missing').status_code == 404
    assert client.patch('/api/transactions/missing/review', json={'reviewStatus': 'APPROVED'}).status_code == 404


def test_store_failure_maps_to_bad_gateway(client, store, monkeypatch):
    def broken(*_args, **_kwargs):
        raise RuntimeError('store offline')

    monkeypatch.setattr(store, 'list_transactions', broken)
    response = client.get('/api/transactions')
    assert response.status_code == 502
