from datetime import datetime, timedelta, timezone
from unittest import mock
import smtplib

import pytest

from storefront_admin import jwt
from storefront_admin.domain import Auth
from storefront_admin.exceptions import (AuthenticationFailed,
                                         IdentityProviderError, InvalidResetToken,
                                         RowStoreError)
from storefront_admin.services.identity import SQLIdentityProvider, reset_link

from conftest import PASSWORD


def test_create_and_list(identity, users):
    listed = {user.email: user.user_id for user in identity.list_users()}
    assert listed == {user.email: user.user_id for user in users.values()}
    assert identity.get_user(users["bob"].user_id) == users["bob"]
    assert identity.get_user("nobody") is None


def test_create_normalizes_and_rejects_duplicates(identity):
    user = identity.create_user("  Dave@Shop.TEST", "pw123456")
    assert user.email == "dave@shop.test"
    with pytest.raises(ValueError):
        identity.create_user("dave@shop.test", "other")
    with pytest.raises(ValueError):
        identity.create_user(" ", "pw123456")
    with pytest.raises(ValueError):
        identity.create_user("eve@shop.test", "")


def test_sign_in_and_out(identity, users):
    signed_in = identity.sign_in("alice@shop.test", PASSWORD)
    assert signed_in.user == users["alice"]
    assert identity.get_current_user(signed_in.token) == users["alice"]

    identity.sign_out(signed_in.token)
    assert identity.get_current_user(signed_in.token) is None
    # Signing out twice is harmless
    identity.sign_out(signed_in.token)


def test_sign_in_is_case_insensitive(identity, users):
    signed_in = identity.sign_in(" ALICE@shop.test ", PASSWORD)
    assert signed_in.user.user_id == users["alice"].user_id


def test_bad_credentials(identity, users):
    with pytest.raises(AuthenticationFailed):
        identity.sign_in("alice@shop.test", "wrong password")
    with pytest.raises(AuthenticationFailed):
        identity.sign_in("ghost@nowhere.test", PASSWORD)
    with pytest.raises(AuthenticationFailed):
        identity.sign_in("alice@shop.test", "")


def test_bogus_tokens(identity, users, secret):
    assert identity.get_current_user(None) is None
    assert identity.get_current_user("") is None
    assert identity.get_current_user("BOGUS") is None

    signed_in = identity.sign_in("bob@shop.test", PASSWORD)
    wrong_secret = SQLIdentityProvider(identity.store, "not the secret")
    assert wrong_secret.get_current_user(signed_in.token) is None

    # A well signed token for a session that was never created
    forged = jwt.encode(Auth(user_id=users["bob"].user_id, session_id="made-up",
                             nonce="n", expires="2999-01-01T00:00:00+00:00"), secret)
    assert identity.get_current_user(forged) is None
    identity.sign_out("BOGUS")


def test_expired_session(identity, users, secret):
    signed_in = identity.sign_in("carol@shop.test", PASSWORD)
    claims = jwt.decode(signed_in.token, secret)
    past = (datetime.now(timezone.utc) - timedelta(minutes=1)).isoformat()
    expired = jwt.encode(claims.model_copy(update={"expires": past}), secret)
    assert identity.get_current_user(expired) is None

    garbled = jwt.encode(claims.model_copy(update={"expires": "soon"}), secret)
    assert identity.get_current_user(garbled) is None


def reset_token(store, email):
    return store.select("password_reset_requests", ["token"], email=email)[-1]["token"]


def test_password_reset(identity, users, store, mailer):
    identity.request_password_reset("alice@shop.test", "http://shop.test/reset")
    rows = store.select("password_reset_requests", ["email", "redirect_to"])
    assert rows == [{"email": "alice@shop.test",
                     "redirect_to": "http://shop.test/reset"}]

    message = mailer.send_message.call_args.args[0]
    assert message["To"] == "alice@shop.test"
    token = reset_token(store, "alice@shop.test")
    assert f"http://shop.test/reset?token={token}" in message.get_content()

    identity.request_password_reset("ghost@nowhere.test")
    assert store.count("password_reset_requests") == 1
    assert mailer.send_message.call_count == 1

    with pytest.raises(ValueError):
        identity.request_password_reset("  ")


def test_store_failures_are_identity_errors(secret):
    store = mock.MagicMock()
    store.select.side_effect = RowStoreError("down")
    store.count.side_effect = RowStoreError("down")
    identity = SQLIdentityProvider(store, secret)

    with pytest.raises(IdentityProviderError):
        identity.list_users()
    with pytest.raises(IdentityProviderError):
        identity.sign_in("alice@shop.test", PASSWORD)
    with pytest.raises(IdentityProviderError):
        identity.request_password_reset("alice@shop.test")


def test_reset_password(identity, users, store):
    old_session = identity.sign_in("bob@shop.test", PASSWORD)
    identity.request_password_reset("bob@shop.test", "http://shop.test/reset")
    identity.request_password_reset("bob@shop.test", "http://shop.test/reset")
    token = reset_token(store, "bob@shop.test")

    identity.reset_password(token, "a new password")

    assert identity.sign_in("bob@shop.test", "a new password").user == users["bob"]
    with pytest.raises(AuthenticationFailed):
        identity.sign_in("bob@shop.test", PASSWORD)
    assert identity.get_current_user(old_session.token) is None
    # Every outstanding link of the user is spent
    assert store.count("password_reset_requests", email="bob@shop.test") == 0
    with pytest.raises(InvalidResetToken):
        identity.reset_password(token, "another password")


def test_reset_password_rejects_bad_tokens(identity, users, store):
    for token in ["", "BOGUS"]:
        with pytest.raises(InvalidResetToken):
            identity.reset_password(token, "a new password")

    identity.request_password_reset("carol@shop.test")
    token = reset_token(store, "carol@shop.test")
    with pytest.raises(ValueError):
        identity.reset_password(token, "")

    store.insert("password_reset_requests", {
        "token": "old", "email": "carol@shop.test", "redirect_to": None,
        "requested_at": datetime.now(timezone.utc) - timedelta(hours=2)})
    with pytest.raises(InvalidResetToken):
        identity.reset_password("old", "a new password")
    assert store.count("password_reset_requests", token="old") == 0
    identity.sign_in("carol@shop.test", PASSWORD)


def test_reset_link():
    assert reset_link("http://shop.test/reset", "t1") == "http://shop.test/reset?token=t1"
    assert reset_link("http://shop.test/r?lang=en", "t1") == "http://shop.test/r?lang=en&token=t1"
    assert reset_link(None, "t1") == "t1"


def test_password_reset_without_mailer(store, secret, users):
    identity = SQLIdentityProvider(store, secret)
    identity.request_password_reset("alice@shop.test")
    assert store.count("password_reset_requests", email="alice@shop.test") == 1


def test_password_reset_mail_failure(identity, users, mailer):
    mailer.send_message.side_effect = smtplib.SMTPServerDisconnected("gone")
    with pytest.raises(IdentityProviderError):
        identity.request_password_reset("alice@shop.test")

    mailer.send_message.side_effect = ConnectionRefusedError()
    with pytest.raises(IdentityProviderError):
        identity.request_password_reset("alice@shop.test")
