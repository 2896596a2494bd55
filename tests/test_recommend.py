"""Tests for the recommendation endpoint.

Tests cover:
- Quick Pick over HTTP (perfect match, inferred match, random fallback)
- Smart Match success and its downgrade to Quick Pick
- Request validation and the empty-library response
"""

import json

from sqlalchemy import func, select

from mealpick.core.ai_client import AIRequestError
from mealpick.models import AIUsage, Recipe

QUICK = "Quick (< 30 min)"


def usage_count(db_session):
    return db_session.scalar(select(func.count()).select_from(AIUsage))


def test_quick_pick_perfect_match(client, make_recipe):
    recipe = make_recipe(
        "Weeknight Stir Fry",
        tags=["Main Dish", QUICK, "Easy"],
        ingredients="rice\ntofu",
        directions="Cook rice.\n\nFry tofu.",
    )
    make_recipe("Lemon Bars", tags=["Dessert"])

    response = client.post("/api/recommend", json={
        "mode": "cooking",
        "filters": ["main-dish", "quick"],
        "smartMatch": False,
    })

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["title"] == "Weeknight Stir Fry"
    assert data["recipe"]["id"] == recipe.id
    assert data["source"] == "quick_pick"
    assert data["filters"] == ["Main Dish", QUICK]
    assert data["matchQuality"] == "perfect"
    assert data["matchCount"] == 2
    assert data["downgraded"] is False
    assert "<li>tofu</li>" in data["recommendation"]
    assert "Step 2" in data["recommendation"]


def test_quick_pick_inferred_match(client, make_recipe):
    make_recipe("Lemon Bars", tags=["Dessert"])
    make_recipe("Fried Rice", tags=[], ai_tags=["weeknight friendly"])

    data = client.post("/api/recommend", json={"filters": ["quick"]}).json()

    assert data["title"] == "Fried Rice"
    assert data["matchQuality"] == "inferred"
    assert data["inferredHits"] == 1
    assert data["matchCount"] == 0


def test_wildcard_only_filters_return_random_recipe(client, make_recipe):
    make_recipe("Lemon Bars", tags=["Dessert"])

    data = client.post("/api/recommend", json={"filters": ["any", "any-time"]}).json()

    assert data["title"] == "Lemon Bars"
    assert data["filters"] == []
    assert data["matchQuality"] is None


def test_no_match_note(client, make_recipe):
    make_recipe("Lemon Bars", tags=["Dessert"])

    data = client.post("/api/recommend", json={"filters": ["vegan"]}).json()

    assert data["matchQuality"] == "none"
    assert data["note"] == "No exact match, showing anyway"


def test_empty_library_returns_404(client):
    response = client.post("/api/recommend", json={"filters": ["quick"]})
    assert response.status_code == 404
    assert "Import your recipe collection" in response.json()["detail"]


def test_takeout_mode_rejected(client, make_recipe):
    make_recipe("Lemon Bars", tags=["Dessert"])
    response = client.post("/api/recommend", json={"mode": "takeout", "filters": []})
    assert response.status_code == 400


def test_smart_match_success(client, db_session, make_recipe, fake_ai, use_ai_client):
    recipe = make_recipe("Stir Fry", tags=["Main Dish", QUICK])
    use_ai_client(fake_ai(reply=json.dumps({
        "choice": 1,
        "reasoning": "Fast, filling and a main course.",
        "new_tags": ["weeknight friendly", "pantry staples"],
    })))

    response = client.post("/api/recommend", json={
        "filters": ["main-dish", "quick", "healthy"],
        "smartMatch": True,
    })

    assert response.status_code == 200
    data = response.json()
    assert data["source"] == "smart_match"
    assert data["reasoning"] == "Fast, filling and a main course."
    assert data["newTags"] == ["weeknight friendly", "pantry staples"]
    assert data["matchQuality"] == "great"
    assert data["recipe"]["ai_tags"] == ["weeknight friendly", "pantry staples"]
    assert data["recipe"]["ai_tag_metadata"]["count"] == 2
    assert data["recipe"]["ai_tag_metadata"]["last_updated"] is not None

    db_session.expire_all()
    assert db_session.get(Recipe, recipe.id).ai_tags == ["weeknight friendly", "pantry staples"]
    assert usage_count(db_session) == 1


def test_smart_match_timeout_downgrades_to_quick_pick(client, db_session, make_recipe, fake_ai, use_ai_client):
    recipe = make_recipe("Stir Fry", tags=["Main Dish", QUICK], ai_tags=["existing"])
    use_ai_client(fake_ai(error=AIRequestError("ReadTimeout: timed out")))

    response = client.post("/api/recommend", json={
        "filters": ["main-dish", "quick"],
        "smartMatch": True,
    })

    assert response.status_code == 200
    data = response.json()
    assert data["source"] == "quick_pick"
    assert data["downgraded"] is True
    assert data["matchQuality"] == "perfect"
    assert data["reasoning"] is None

    db_session.expire_all()
    assert db_session.get(Recipe, recipe.id).ai_tags == ["existing"]
    assert usage_count(db_session) == 0


def test_smart_match_without_candidates_skips_ai(client, db_session, make_recipe, fake_ai, use_ai_client):
    make_recipe("Lemon Bars", tags=["Dessert"])
    fake = use_ai_client(fake_ai(reply="unused"))

    data = client.post("/api/recommend", json={"filters": ["vegan"], "smartMatch": True}).json()

    assert data["source"] == "smart_match"
    assert data["matchQuality"] == "none"
    assert fake.prompts == []
    assert usage_count(db_session) == 0


def test_smart_match_with_only_wildcards_uses_quick_pick(client, db_session, make_recipe, fake_ai, use_ai_client):
    make_recipe("Lemon Bars", tags=["Dessert"])
    fake = use_ai_client(fake_ai(reply="unused"))

    data = client.post("/api/recommend", json={"filters": ["any"], "smartMatch": True}).json()

    assert data["source"] == "quick_pick"
    assert data["downgraded"] is False
    assert fake.prompts == []
