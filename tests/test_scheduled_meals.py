import pytest

from app.models import CookingHistory, Recipe, ScheduledMeal


@pytest.fixture
def recipe(db_session, user):
    r = Recipe(name="Green Curry", created_by=user.id)
    db_session.add(r)
    db_session.commit()
    db_session.refresh(r)
    return r


def _schedule(client, headers, recipe_id, when, **fields):
    response = client.post(
        "/api/scheduled-meals",
        json={"recipe_id": recipe_id, "scheduled_for": when, **fields},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_schedule_and_list_in_date_order(client, auth_headers, recipe):
    _schedule(client, auth_headers, recipe.id, "2026-11-03T18:00:00Z", notes="guests")
    _schedule(client, auth_headers, recipe.id, "2026-11-01T18:00:00Z")

    meals = client.get("/api/scheduled-meals", headers=auth_headers).json()
    assert [m["scheduled_for"][:10] for m in meals] == ["2026-11-01", "2026-11-03"]
    assert meals[0]["recipe"]["name"] == "Green Curry"
    assert meals[1]["notes"] == "guests"


def test_schedule_unknown_recipe(client, auth_headers):
    response = client.post(
        "/api/scheduled-meals",
        json={"recipe_id": "missing", "scheduled_for": "2026-11-01T18:00:00Z"},
        headers=auth_headers,
    )
    assert response.status_code == 404


def test_complete_with_history_creates_exactly_one_entry(client, db_session, auth_headers, recipe):
    meal = _schedule(client, auth_headers, recipe.id, "2026-11-01T18:00:00Z")
    body = {"add_to_history": True, "history_notes": "kids loved it", "history_rating": 5}

    assert client.post(f"/api/scheduled-meals/{meal['id']}/complete", json=body, headers=auth_headers).status_code == 200
    # Completing again is a no-op
    assert client.post(f"/api/scheduled-meals/{meal['id']}/complete", json=body, headers=auth_headers).status_code == 200

    entries = db_session.query(CookingHistory).filter_by(recipe_id=recipe.id).all()
    assert len(entries) == 1
    assert entries[0].notes == "kids loved it"
    assert entries[0].rating == 5

    db_session.refresh(recipe)
    assert recipe.last_cooked_at is not None


def test_complete_without_history(client, db_session, auth_headers, recipe):
    meal = _schedule(client, auth_headers, recipe.id, "2026-11-01T18:00:00Z")
    response = client.post(
        f"/api/scheduled-meals/{meal['id']}/complete", json={"add_to_history": False}, headers=auth_headers
    )
    assert response.status_code == 200

    assert db_session.query(CookingHistory).count() == 0
    assert db_session.get(ScheduledMeal, meal["id"]).completed is True


def test_completed_meals_hidden_unless_requested(client, auth_headers, recipe):
    done = _schedule(client, auth_headers, recipe.id, "2026-11-01T18:00:00Z")
    _schedule(client, auth_headers, recipe.id, "2026-11-02T18:00:00Z")
    client.post(f"/api/scheduled-meals/{done['id']}/complete", json={}, headers=auth_headers)

    assert len(client.get("/api/scheduled-meals", headers=auth_headers).json()) == 1
    everything = client.get(
        "/api/scheduled-meals", params={"include_completed": True}, headers=auth_headers
    ).json()
    assert len(everything) == 2


def test_complete_missing_meal(client, auth_headers):
    response = client.post("/api/scheduled-meals/missing/complete", json={}, headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["detail"] == "Scheduled meal not found"


def test_range_is_inclusive(client, auth_headers, recipe):
    _schedule(client, auth_headers, recipe.id, "2026-11-01T00:00:00Z")
    _schedule(client, auth_headers, recipe.id, "2026-11-07T23:59:59Z")
    _schedule(client, auth_headers, recipe.id, "2026-11-08T12:00:00Z")

    meals = client.get(
        "/api/scheduled-meals/range",
        params={"start": "2026-11-01T00:00:00Z", "end": "2026-11-07T23:59:59Z"},
        headers=auth_headers,
    ).json()
    assert len(meals) == 2


def test_range_start_after_end(client, auth_headers):
    response = client.get(
        "/api/scheduled-meals/range",
        params={"start": "2026-11-08T00:00:00Z", "end": "2026-11-01T00:00:00Z"},
        headers=auth_headers,
    )
    assert response.status_code == 400


def test_patch_and_delete_meal(client, auth_headers, recipe):
    meal = _schedule(client, auth_headers, recipe.id, "2026-11-01T18:00:00Z")

    patched = client.patch(
        f"/api/scheduled-meals/{meal['id']}",
        json={"scheduled_for": "2026-11-05T18:00:00Z", "notes": "moved"},
        headers=auth_headers,
    )
    assert patched.status_code == 200
    assert patched.json()["scheduled_for"].startswith("2026-11-05")
    assert patched.json()["notes"] == "moved"

    assert client.delete(f"/api/scheduled-meals/{meal['id']}", headers=auth_headers).status_code == 204
    assert client.get("/api/scheduled-meals", headers=auth_headers).json() == []
