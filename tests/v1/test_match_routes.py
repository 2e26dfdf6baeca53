"""Tests for match suggestion and approach endpoints."""

from fastapi import status

from afterclasses.models import Approach


def test_suggestions(client, test_user, other_user, make_user) -> None:
    same_gender = make_user(gender="female")

    response = client.get(
        "/api/match/suggestions", params={"userId": test_user.id, "gender": "female"}
    )

    assert response.status_code == status.HTTP_200_OK
    ids = [user["id"] for user in response.json()["users"]]
    assert other_user.id in ids
    assert test_user.id not in ids
    assert same_gender.id not in ids


def test_approach_success(client, db_session, test_user, other_user) -> None:
    response = client.post(
        "/api/match/approach",
        json={"fromUserId": test_user.id, "toUserId": other_user.id, "requestLine": "Hi!"},
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"success": True}
    db_session.refresh(test_user)
    assert test_user.coins == 390
    assert db_session.query(Approach).count() == 1


def test_approach_not_enough_coins(client, db_session, make_user, other_user) -> None:
    broke = make_user(coins=9)

    response = client.post(
        "/api/match/approach",
        json={"fromUserId": broke.id, "toUserId": other_user.id, "requestLine": "Hi!"},
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Not enough coins"
    db_session.refresh(broke)
    assert broke.coins == 9
    assert db_session.query(Approach).count() == 0
