"""Test authentication endpoints."""
import json

import pytest
from flask_jwt_extended import create_refresh_token

from attendance_tracker.models.user import UserRole
from tests.conftest import make_user

@pytest.fixture
def sample_user(app):
    """Create sample user for testing."""
    return make_user('test@example.com', UserRole.LECTURER)

def test_health_check(client):
    """Test auth health endpoint."""
    response = client.get('/api/auth/health')
    assert response.status_code == 200
    data = json.loads(response.data)
    assert data['message'] == 'Auth service is running'

def test_app_health(client):
    response = client.get('/health')
    assert response.status_code == 200
    assert response.get_json()['status'] == 'healthy'

def test_login_success(client, sample_user):
    """Test successful login."""
    response = client.post('/api/auth/login',
        json={
            'email': 'test@example.com',
            'password': 'password123'
        })
    
    assert response.status_code == 200
    data = json.loads(response.data)
    assert data['error'] is False
    assert 'access_token' in data['data']
    assert 'refresh_token' in data['data']
    assert data['data']['user']['role'] == 'lecturer'
    assert 'password_hash' not in data['data']['user']

def test_login_validation(client):
    """Missing body and fields are rejected."""
    response = client.post('/api/auth/login', data='not json', content_type='text/plain')
    assert response.status_code == 400
    
    response = client.post('/api/auth/login', json={'email': 'test@example.com'})
    assert response.status_code == 400

def test_login_invalid_credentials(client, sample_user):
    """Test login with invalid credentials."""
    response = client.post('/api/auth/login',
        json={
            'email': 'test@example.com',
            'password': 'wrongpassword'
        })
    
    assert response.status_code == 401
    assert sample_user.failed_login_attempts == 1

def test_login_locks_after_repeated_failures(client, sample_user):
    for _ in range(5):
        client.post('/api/auth/login', json={'email': 'test@example.com', 'password': 'nope'})
    
    response = client.post('/api/auth/login',
        json={'email': 'test@example.com', 'password': 'password123'})
    
    assert response.status_code == 401
    assert 'locked' in response.get_json()['message']

def test_login_inactive_account(client, sample_user):
    sample_user.update(is_active=False)
    response = client.post('/api/auth/login',
        json={'email': 'test@example.com', 'password': 'password123'})
    assert response.status_code == 401
    assert response.get_json()['message'] == 'Account is deactivated'

def test_get_current_user(client, sample_user):
    """Test get current user profile."""
    login_response = client.post('/api/auth/login',
        json={
            'email': 'test@example.com',
            'password': 'password123'
        })
    
    token = json.loads(login_response.data)['data']['access_token']
    
    response = client.get('/api/auth/me',
        headers={'Authorization': f'Bearer {token}'})
    
    assert response.status_code == 200
    data = json.loads(response.data)
    assert data['error'] is False
    assert data['data']['email'] == 'test@example.com'

def test_me_requires_token(client):
    response = client.get('/api/auth/me')
    assert response.status_code == 401
    assert response.get_json()['message'] == 'Authorization token required'

def test_refresh_token(client, sample_user):
    refresh = create_refresh_token(identity=str(sample_user.id))
    response = client.post('/api/auth/refresh', headers={'Authorization': f'Bearer {refresh}'})
    assert response.status_code == 200
    assert 'access_token' in response.get_json()['data']

def test_swagger_spec_served(client):
    response = client.get('/api/swagger.json')
    assert response.status_code == 200
    assert '/attendance/submit' in response.get_json()['paths']

@pytest.mark.parametrize('body', [['x'], 'email', 42])
def test_login_rejects_non_object_body(client, body):
    response = client.post('/api/auth/login', json=body)
    assert response.status_code == 400
    assert response.get_json()['message'] == 'Request body must be a JSON object'

def test_login_rejects_non_string_credentials(client, sample_user):
    response = client.post('/api/auth/login', json={'email': ['test@example.com'], 'password': 'password123'})
    assert response.status_code == 400
