import pytest
from datetime import datetime, timezone

from app.core.clock import as_utc
from app.models import Recipe


@pytest.fixture
def recipe(db_session, user):
    r = Recipe(name="Shakshuka", created_by=user.id)
    db_session.add(r)
    db_session.commit()
    db_session.refresh(r)
    return r


def _log(client, headers, recipe_id, **fields):
    response = client.post("/api/history", json={"recipe_id": recipe_id, **fields}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_add_history_defaults_to_now_and_updates_last_cooked(client, db_session, auth_headers, recipe, user):
    entry = _log(client, auth_headers, recipe.id, notes="extra feta", rating=5)
    assert entry["cooked_by"] == user.id
    assert entry["rating"] == 5

    db_session.refresh(recipe)
    assert recipe.last_cooked_at is not None


def test_older_entry_does_not_move_last_cooked_back(client, db_session, auth_headers, recipe):
    _log(client, auth_headers, recipe.id, cooked_at="2026-05-01T19:00:00Z")
    _log(client, auth_headers, recipe.id, cooked_at="2026-03-01T19:00:00Z")

    db_session.refresh(recipe)
    assert as_utc(recipe.last_cooked_at) == datetime(2026, 5, 1, 19, 0, tzinfo=timezone.utc)


def test_history_for_unknown_recipe(client, auth_headers):
    response = client.post("/api/history", json={"recipe_id": "missing"}, headers=auth_headers)
    assert response.status_code == 404


def test_recipe_history_newest_first(client, auth_headers, recipe):
    _log(client, auth_headers, recipe.id, cooked_at="2026-01-01T12:00:00Z", notes="first")
    _log(client, auth_headers, recipe.id, cooked_at="2026-02-01T12:00:00Z", notes="second")

    entries = client.get(f"/api/recipes/{recipe.id}/history", headers=auth_headers).json()
    assert [e["notes"] for e in entries] == ["second", "first"]


def test_recent_history_embeds_recipe_and_limits(client, auth_headers, recipe):
    for day in range(1, 6):
        _log(client, auth_headers, recipe.id, cooked_at=f"2026-01-0{day}T12:00:00Z")

    entries = client.get("/api/history/recent", params={"limit": 3}, headers=auth_headers).json()
    assert len(entries) == 3
    assert entries[0]["recipe"]["name"] == "Shakshuka"
    assert entries[0]["cooked_at"].startswith("2026-01-05")


def test_patch_and_delete_history(client, auth_headers, recipe):
    entry = _log(client, auth_headers, recipe.id, notes="too salty")

    patched = client.patch(
        f"/api/history/{entry['id']}", json={"notes": "perfect", "rating": 4}, headers=auth_headers
    )
    assert patched.status_code == 200
    assert patched.json()["notes"] == "perfect"
    assert patched.json()["rating"] == 4

    assert client.delete(f"/api/history/{entry['id']}", headers=auth_headers).status_code == 204
    assert client.get(f"/api/recipes/{recipe.id}/history", headers=auth_headers).json() == []


def test_patch_missing_entry(client, auth_headers):
    response = client.patch("/api/history/missing", json={"notes": "x"}, headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["detail"] == "History entry not found"


def test_patch_cooked_at_moves_last_cooked_forward(client, db_session, auth_headers, recipe):
    entry = _log(client, auth_headers, recipe.id, cooked_at="2026-03-01T19:00:00Z")

    response = client.patch(
        f"/api/history/{entry['id']}", json={"cooked_at": "2026-06-01T21:00:00+02:00"}, headers=auth_headers
    )
    assert response.status_code == 200
    assert response.json()["cooked_at"].startswith("2026-06-01T19:00:00")

    db_session.refresh(recipe)
    assert as_utc(recipe.last_cooked_at) == datetime(2026, 6, 1, 19, 0, tzinfo=timezone.utc)


def test_patch_null_cooked_at_rejected(client, auth_headers, recipe):
    entry = _log(client, auth_headers, recipe.id)
    response = client.patch(f"/api/history/{entry['id']}", json={"cooked_at": None}, headers=auth_headers)
    assert response.status_code == 422
