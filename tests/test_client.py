from __future__ import annotations

import pytest

from chatlite.client import ChatClient, ClientError


@pytest.fixture
def alice(client):
    return ChatClient(base_url="", session=client)


@pytest.fixture
def bob(client):
    return ChatClient(base_url="", session=client)


def test_register_sets_current_user(alice):
    user = alice.register("Alice", " 111111 ")

    assert user.phone == "111111"
    assert alice.current_user == user


def test_client_side_phone_validation(alice, client):
    with pytest.raises(ClientError) as excinfo:
        alice.register("Alice", "12a45")

    assert excinfo.value.status_code == 400
    assert client.get("/users").json() == []


def test_server_errors_become_client_errors(alice):
    with pytest.raises(ClientError) as excinfo:
        alice.login("999999")

    assert excinfo.value.status_code == 404
    assert alice.current_user is None


def test_requires_login(alice):
    with pytest.raises(ClientError) as excinfo:
        alice.contacts()
    assert excinfo.value.status_code == 401


def test_conversation(alice, bob):
    alice.register("Alice", "111111")
    bob.register("Bob", "222222")
    alice.add_contact("Bobby", "222222")

    alice.send("222222", "hi bob")
    bob.send("111111", "hi alice")

    assert [m.content for m in alice.messages("222222")] == ["hi bob", "hi alice"]
    assert [m.content for m in bob.messages("111111")] == ["hi bob", "hi alice"]
    (summary,) = alice.chats()
    assert summary.name == "Bobby"
    assert summary.last_message == "hi alice"


def test_profile_and_logout(alice, bob):
    alice.register("Alice", "111111")
    bob.register("Bob", "222222")
    bob.add_contact("Al", "111111")

    alice.update_profile(name="Alicia", bio="away")
    assert alice.current_user.name == "Alicia"
    assert bob.contacts()[0].name == "Alicia"

    alice.logout()
    assert alice.current_user is None
    assert {u.phone: u.status for u in bob.users()}["111111"] == "offline"
    assert bob.heartbeat().status == "online"
