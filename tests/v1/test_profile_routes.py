"""Tests for profile creation."""

from fastapi import status

from afterclasses.models import User


def test_create_profile(client, db_session) -> None:
    response = client.post(
        "/api/users/create-profile",
        json={
            "email": "asha@ljku.edu.in",
            "name": "Asha",
            "gender": "female",
            "pitchLine": "Will trade notes for chai",
            "personality": ["introvert"],
            "toxicTraits": ["late replies"],
            "interests": ["music", "chess"],
            "avatar": "avatar-3",
        },
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["success"] is True
    user = data["user"]
    assert user["coins"] == 400
    assert user["pitch_line"] == "Will trade notes for chai"
    assert user["toxic_traits"] == ["late replies"]
    assert db_session.query(User).filter(User.email == "asha@ljku.edu.in").count() == 1


def test_create_profile_defaults_lists(client) -> None:
    response = client.post("/api/users/create-profile", json={"email": "b@ljku.edu.in"})

    assert response.status_code == status.HTTP_200_OK
    user = response.json()["user"]
    assert user["personality"] == []
    assert user["interests"] == []


def test_create_profile_duplicate_email(client, make_user) -> None:
    make_user(email="dup@ljku.edu.in")

    response = client.post("/api/users/create-profile", json={"email": "dup@ljku.edu.in"})

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json()["detail"] == "Database error"
