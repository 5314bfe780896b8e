import os

# Smoke checks run against the in-memory mock database
os.environ.setdefault("USE_MOCK_DB", "true")
os.environ.setdefault("MOCK_DB_PATH", "")

from fastapi.testclient import TestClient
from rakshak.main import app

with TestClient(app) as client:
    print('ROOT:')
    print(client.get('/').json())

    print('\nHEALTH:')
    print(client.get('/api/health').json())

    print('\nDB HEALTH:')
    try:
        resp = client.get('/api/health/db')
        print(resp.status_code)
        try:
            print(resp.json())
        except Exception:
            print(resp.text)
    except Exception as e:
        print('DB call raised exception:', e)

    print('\nLOGIN:')
    print(client.post('/api/auth/login', json={'username': 'Admin', 'password': 'admin123'}).json())

    print('\nCREATE INCIDENT:')
    resp = client.post('/api/incidents', data={'title': 'Smoke check', 'description': 'run_checks.py', 'category': 'other'})
    print(resp.status_code, resp.json())

    print('\nSTATS:')
    print(client.get('/api/stats').json())
