import pytest
from unittest.mock import MagicMock, patch

from app.ai.image_client import ImageClient
from app.core.clock import utc_date_key
from app.errors import NotAuthenticated, ProviderError, user_message
from app.models import ImageGenerationLimit, Recipe, RecipeImage
from app.services import image_generation
from app.settings import settings


@pytest.fixture
def recipe(db_session, user):
    r = Recipe(name="Mushroom Risotto", image_prompt="creamy mushroom risotto", created_by=user.id)
    db_session.add(r)
    db_session.commit()
    db_session.refresh(r)
    return r


def _generate(client, headers, recipe_id, **body):
    return client.post(f"/api/recipes/{recipe_id}/images/generate", json=body or None, headers=headers)


def _accepted(db_session, recipe_id):
    db_session.expire_all()
    return db_session.query(RecipeImage).filter_by(recipe_id=recipe_id, is_accepted=True).all()


def test_first_generation_is_auto_accepted(client, db_session, auth_headers, recipe, store):
    response = _generate(client, auth_headers, recipe.id)
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["success"] is True

    image = db_session.get(RecipeImage, body["image_entry_id"])
    assert image.status == "completed"
    assert image.is_accepted is True
    assert image.prompt == "creamy mushroom risotto"

    db_session.refresh(recipe)
    assert recipe.image_key == image.image_key
    assert recipe.image_generation_status == "completed"
    assert recipe.image_source == "ai"


def test_second_generation_keeps_first_accepted(client, db_session, auth_headers, recipe, store):
    first = _generate(client, auth_headers, recipe.id).json()["image_entry_id"]
    second = _generate(client, auth_headers, recipe.id, prompt="risotto with truffle").json()["image_entry_id"]

    accepted = _accepted(db_session, recipe.id)
    assert [img.id for img in accepted] == [first]

    db_session.refresh(recipe)
    assert recipe.image_generation_status == "completed"
    assert db_session.get(RecipeImage, second).prompt == "risotto with truffle"


def test_accept_switches_single_accepted_image(client, db_session, auth_headers, recipe, store):
    _generate(client, auth_headers, recipe.id)
    second = _generate(client, auth_headers, recipe.id, prompt="plated risotto").json()["image_entry_id"]

    response = client.post(f"/api/images/{second}/accept", headers=auth_headers)
    assert response.status_code == 200

    accepted = _accepted(db_session, recipe.id)
    assert [img.id for img in accepted] == [second]
    db_session.refresh(recipe)
    assert recipe.image_key == accepted[0].image_key
    assert recipe.image_prompt == "plated risotto"


def test_list_images_newest_first_with_urls(client, auth_headers, recipe, store):
    _generate(client, auth_headers, recipe.id, prompt="one")
    _generate(client, auth_headers, recipe.id, prompt="two")

    images = client.get(f"/api/recipes/{recipe.id}/images", headers=auth_headers).json()
    assert [img["prompt"] for img in images] == ["two", "one"]
    assert all(img["image_url"].endswith(img["image_key"]) for img in images)


def test_eleventh_generation_is_blocked(client, db_session, auth_headers, recipe, user, store):
    with ImageClient(provider="mock") as image_client:
        for _ in range(settings.daily_image_limit):
            image_generation.generate_recipe_image(
                db_session, user, recipe.id, image_client=image_client, store=store
            )

    response = _generate(client, auth_headers, recipe.id)
    assert response.status_code == 429
    assert response.json()["detail"] == (
        "You've reached the daily limit of 10 image generations. Please try again tomorrow."
    )

    counter = db_session.query(ImageGenerationLimit).filter_by(date=utc_date_key()).one()
    assert counter.count == settings.daily_image_limit
    assert db_session.query(RecipeImage).count() == settings.daily_image_limit


def test_disabled_account_cannot_generate(client, db_session, auth_headers, recipe, user, store):
    user.can_generate_images = False
    db_session.commit()

    response = _generate(client, auth_headers, recipe.id)
    assert response.status_code == 403
    assert db_session.query(ImageGenerationLimit).count() == 0


def test_generate_for_missing_recipe(client, auth_headers, store):
    response = _generate(client, auth_headers, "missing")
    assert response.status_code == 404


def test_provider_failure_marks_rows_failed_and_still_counts(db_session, user, recipe):
    failing = MagicMock()
    failing.generate.side_effect = ProviderError("Fal AI error: 503")

    with pytest.raises(ProviderError) as exc:
        image_generation.generate_recipe_image(
            db_session, user, recipe.id, image_client=failing, store=MagicMock()
        )
    assert exc.value.status_code == 502

    image = db_session.query(RecipeImage).one()
    assert image.status == "failed"
    assert image.is_accepted is False
    db_session.refresh(recipe)
    assert recipe.image_generation_status == "failed"
    assert image_generation.get_daily_count(db_session, utc_date_key()) == 1


def test_storage_failure_is_reported_as_upload_error(client, auth_headers, recipe, store):
    store.put_bytes.side_effect = RuntimeError("bucket unreachable")

    response = _generate(client, auth_headers, recipe.id)
    assert response.status_code == 502
    assert response.json()["detail"] == "Failed to save the image. Please try again."


def test_only_creator_may_accept(client, db_session, auth_headers, recipe, other_user):
    image = RecipeImage(recipe_id=recipe.id, image_key="images/guest.webp", prompt="p",
                        status="completed", source="ai", created_by=other_user.id)
    db_session.add(image)
    db_session.commit()

    response = client.post(f"/api/images/{image.id}/accept", headers=auth_headers)
    assert response.status_code == 403
    assert response.json()["detail"] == "Not authorized"


def test_cannot_accept_image_without_key(client, db_session, auth_headers, recipe, user):
    image = RecipeImage(recipe_id=recipe.id, prompt="p", status="generating",
                        source="ai", created_by=user.id)
    db_session.add(image)
    db_session.commit()

    response = client.post(f"/api/images/{image.id}/accept", headers=auth_headers)
    assert response.status_code == 409


def test_accept_missing_image(client, auth_headers):
    assert client.post("/api/images/missing/accept", headers=auth_headers).status_code == 404


def test_uploaded_image_replaces_accepted_ai_image(client, db_session, auth_headers, recipe, store):
    _generate(client, auth_headers, recipe.id)

    response = client.post(
        f"/api/recipes/{recipe.id}/images/uploaded",
        json={"image_key": "images/phone-photo.jpg"},
        headers=auth_headers,
    )
    assert response.status_code == 201
    assert response.json()["source"] == "upload"

    accepted = _accepted(db_session, recipe.id)
    assert len(accepted) == 1
    assert accepted[0].image_key == "images/phone-photo.jpg"
    db_session.refresh(recipe)
    assert recipe.image_source == "upload"
    assert recipe.image_prompt == "creamy mushroom risotto"


def test_replace_sets_uploaded_prompt(client, db_session, auth_headers, recipe):
    response = client.post(
        f"/api/recipes/{recipe.id}/images/replace",
        json={"image_key": "images/new.jpg"},
        headers=auth_headers,
    )
    assert response.status_code == 201

    db_session.refresh(recipe)
    assert recipe.image_key == "images/new.jpg"
    assert recipe.image_prompt == "Uploaded image"
    assert recipe.image_source == "upload"
    assert recipe.image_generation_status == "completed"


def test_counter_rolls_over_by_utc_date(db_session):
    image_generation.increment_daily_count(db_session, "2026-10-18")
    image_generation.increment_daily_count(db_session, "2026-10-18")
    image_generation.increment_daily_count(db_session, "2026-10-19")

    assert image_generation.get_daily_count(db_session, "2026-10-18") == 2
    assert image_generation.get_daily_count(db_session, "2026-10-19") == 1
    assert image_generation.get_daily_count(db_session, "2026-10-20") == 0


def test_generation_rate_limited(client, auth_headers, recipe, store):
    with patch.object(settings, "daily_image_limit", 100):
        codes = [_generate(client, auth_headers, recipe.id).status_code for _ in range(11)]
    assert codes[:10] == [200] * 10
    assert codes[10] == 429


def test_anonymous_caller_is_rejected_before_counting(db_session, recipe):
    with pytest.raises(NotAuthenticated) as exc:
        image_generation.generate_recipe_image(
            db_session, None, recipe.id, image_client=MagicMock(), store=MagicMock()
        )
    assert exc.value.status_code == 401
    assert user_message(exc.value) == "Please log in to generate images."
    assert image_generation.get_daily_count(db_session, utc_date_key()) == 0


def test_counter_row_created_concurrently_is_reused(db_session):
    db_session.add(ImageGenerationLimit(date="2026-10-19", count=3))
    db_session.commit()

    real_counter = image_generation._counter
    lookups = []

    def stale_first_lookup(db, date_key):
        lookups.append(date_key)
        # The first lookup misses the row another request just inserted
        return None if len(lookups) == 1 else real_counter(db, date_key)

    with patch.object(image_generation, "_counter", side_effect=stale_first_lookup):
        assert image_generation.increment_daily_count(db_session, "2026-10-19") == 4

    assert db_session.query(ImageGenerationLimit).filter_by(date="2026-10-19").count() == 1
