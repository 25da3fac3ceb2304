import logging
from unittest import mock

import pytest
from fastapi import HTTPException

import storefront_admin.fastapi.auth as auth
from storefront_admin.domain import IdentityUser, RawAuth
from storefront_admin.exceptions import IdentityProviderError
from storefront_admin.roster import AdminRoster

auth.log.setLevel(logging.DEBUG)


def test_requires_auth(client, users):
    res = client.get("/me")
    assert res.status_code == 401

    for header in ["BOGUS", "Bearer", "Bearer BOGUS", "Bearer BOGUS BOGUS",
                   "Basic Zm9vOmJhcg==", ""]:
        res = client.get("/me", headers={"Authorization": header})
        assert res.status_code == 401, header

    client.cookies.set(client.app.extra['AUTH_SESSION_COOKIE_NAME'], "BOGUS")
    res = client.get("/me")
    assert res.status_code == 401


def test_signed_in_user(client, users, login):
    headers = login("bob@shop.test")
    res = client.get("/me", headers=headers)
    assert res.status_code == 200
    assert res.json() == {"user": {"user_id": users["bob"].user_id,
                                   "email": "bob@shop.test"},
                          "is_admin": False}


def test_session_cookie(client, users, identity):
    signed_in = identity.sign_in("bob@shop.test", "correct horse battery")
    client.cookies.set(client.app.extra['AUTH_SESSION_COOKIE_NAME'], signed_in.token)
    res = client.get("/me")
    assert res.status_code == 200
    assert res.json()["user"]["email"] == "bob@shop.test"


def test_stale_cookie_falls_back_to_header(client, users, identity, login):
    headers = login("bob@shop.test")
    client.cookies.set(client.app.extra['AUTH_SESSION_COOKIE_NAME'], "BOGUS")
    res = client.get("/me", headers=headers)
    assert res.status_code == 200
    assert res.json()["user"]["email"] == "bob@shop.test"

    signed_out = identity.sign_in("bob@shop.test", "correct horse battery")
    identity.sign_out(signed_out.token)
    client.cookies.set(client.app.extra['AUTH_SESSION_COOKIE_NAME'], signed_out.token)
    assert client.get("/me", headers=headers).status_code == 200
    assert client.get("/me").status_code == 401


def test_non_admin_is_forbidden(client, users, login):
    headers = login("carol@shop.test")
    for method, path in [("get", "/admin/users"), ("get", "/admin/overview"),
                         ("delete", f"/admin/users/{users['carol'].user_id}")]:
        res = getattr(client, method)(path, headers=headers)
        assert res.status_code == 403, path
    res = client.post("/admin/users", json={"email": "carol@shop.test"},
                      headers=headers)
    assert res.status_code == 403


def test_admin_is_allowed(client, users, roster, login):
    roster.add_admin("alice@shop.test")
    headers = login("alice@shop.test")
    assert client.get("/admin/users", headers=headers).status_code == 200
    assert client.get("/admin/overview", headers=headers).status_code == 200


def test_admin_check_failure_denies(client, users, roster, identity, login):
    roster.add_admin("alice@shop.test")
    headers = login("alice@shop.test")
    broken = mock.MagicMock()
    broken.count.side_effect = RuntimeError("down")
    broken.select.side_effect = RuntimeError("down")
    client.app.extra["roster"] = AdminRoster(broken, identity)
    res = client.get("/admin/users", headers=headers)
    assert res.status_code == 403


@pytest.mark.asyncio
async def test_jwt_header():
    assert await auth.jwt_header(None) is None
    assert await auth.jwt_header("Bearer") is None
    assert await auth.jwt_header("   ") is None
    assert await auth.jwt_header("Token abc") is None
    raw = await auth.jwt_header("Bearer abc")
    assert raw == RawAuth(rawjwt="abc", rawheader="Bearer abc",
                          via="header", key="Authorization")


@pytest.mark.asyncio
async def test_rawauths_cookie_first():
    cookie = RawAuth(rawjwt="c", via="cookie", key="storefront_session")
    header = RawAuth(rawjwt="h", via="header", key="Authorization")
    assert await auth.rawauths(cookie, header) == [cookie, header]
    assert await auth.rawauths(None, header) == [header]
    assert await auth.rawauths(None, None) == []


def test_identity_failure_is_unauthenticated():
    identity = mock.MagicMock()
    identity.get_current_user.side_effect = IdentityProviderError("down")
    raw = RawAuth(rawjwt="abc", via="header", key="Authorization")
    assert auth.current_user_or_none([raw], identity) is None
    assert auth.current_user_or_none([], identity) is None
    with pytest.raises(HTTPException) as excinfo:
        auth.current_user(None)
    assert excinfo.value.status_code == 401


def test_admin_user_dependency():
    user = IdentityUser(user_id="u1", email="a@b.test")
    roster = mock.MagicMock()
    roster.is_admin.return_value = True
    assert auth.admin_user(user, roster) == user

    roster.is_admin.return_value = False
    with pytest.raises(HTTPException) as excinfo:
        auth.admin_user(user, roster)
    assert excinfo.value.status_code == 403
