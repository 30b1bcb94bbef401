from app.core.db import to_async_url
from app.core.security import decode_auth_token, is_admin_claims
from conftest import make_token


def test_async_url_switches_driver_and_drops_psycopg_params():
    url = to_async_url("postgresql://u:p@db.example.com/salon?sslmode=require&channel_binding=require&application_name=api")
    assert url == "postgresql+asyncpg://u:p@db.example.com/salon?application_name=api"


def test_decode_auth_token():
    claims = decode_auth_token(make_token("owner@salon.test"))
    assert claims["email"] == "owner@salon.test"
    assert decode_auth_token("garbage") is None


def test_admin_by_email_or_role():
    assert is_admin_claims({"email": "Owner@Salon.test"})
    assert is_admin_claims({"email": "staff@example.com", "app_metadata": {"role": "super_admin"}})
    assert not is_admin_claims({"email": "customer@example.com", "role": "authenticated"})
    assert not is_admin_claims({})
