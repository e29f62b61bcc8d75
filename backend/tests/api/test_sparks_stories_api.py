"""Integration tests for spark and story endpoints."""

from uuid import uuid4

import pytest

pytestmark = pytest.mark.integration


def test_create_and_get_spark(api_client):
    response = api_client.post("/api/sparks", json={"title": "  Burnout recovery  ", "initial_thoughts": "Notes"})

    assert response.status_code == 201
    spark = response.json()
    assert spark["title"] == "Burnout recovery"
    assert spark["artifact_counts"] == {"draft": 0, "final": 0}

    fetched = api_client.get(f"/api/sparks/{spark['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["id"] == spark["id"]


@pytest.mark.parametrize("payload", [{"title": ""}, {"title": "   "}, {"title": "x" * 256}, {}])
def test_create_spark_validation(api_client, payload):
    assert api_client.post("/api/sparks", json=payload).status_code == 422


def test_list_sparks_newest_first(api_client):
    first = api_client.post("/api/sparks", json={"title": "First"}).json()
    second = api_client.post("/api/sparks", json={"title": "Second"}).json()

    sparks = api_client.get("/api/sparks").json()

    assert [s["id"] for s in sparks] == [second["id"], first["id"]]


def test_spark_counts_reflect_artifacts(api_client, story):
    artifact = api_client.post("/api/artifacts", json={"story_id": story["id"], "type": "linkedin_post"}).json()
    api_client.post(f"/api/artifacts/{artifact['id']}/finalize")
    api_client.post("/api/artifacts", json={"story_id": story["id"], "type": "linkedin_post"})

    spark = api_client.get(f"/api/sparks/{story['spark_id']}").json()

    assert spark["artifact_counts"] == {"draft": 1, "final": 1}


def test_delete_spark_removes_story_and_artifacts(api_client, story):
    artifact = api_client.post("/api/artifacts", json={"story_id": story["id"], "type": "linkedin_post"}).json()

    assert api_client.delete(f"/api/sparks/{story['spark_id']}").status_code == 204

    assert api_client.get(f"/api/sparks/{story['spark_id']}").status_code == 404
    assert api_client.get(f"/api/stories/{story['id']}").status_code == 404
    assert api_client.get(f"/api/artifacts/{artifact['id']}").status_code == 404
    assert api_client.delete(f"/api/sparks/{story['spark_id']}").status_code == 404


def test_missing_spark_story_returns_404(api_client):
    assert api_client.get(f"/api/sparks/{uuid4()}/story").status_code == 404


def test_update_story(api_client, story):
    response = api_client.put(f"/api/stories/{story['id']}", json={"content": "A new telling."})

    assert response.status_code == 200
    assert response.json()["content"] == "A new telling."
    assert api_client.get(f"/api/stories/{story['id']}").json()["content"] == "A new telling."


def test_update_story_too_long_rejected(api_client, story):
    response = api_client.put(f"/api/stories/{story['id']}", json={"content": "x" * 50001})

    assert response.status_code == 422


def test_autosave_stamps_time(api_client, story):
    before = api_client.get(f"/api/stories/{story['id']}").json()

    saved = api_client.patch(f"/api/stories/{story['id']}/autosave", json={"content": "typing..."}).json()

    assert saved["content"] == "typing..."
    assert saved["last_auto_saved_at"] != before["last_auto_saved_at"]


def test_update_missing_story_returns_404(api_client):
    response = api_client.put(f"/api/stories/{uuid4()}", json={"content": "text"})

    assert response.status_code == 404
    assert response.json()["detail"] == "Story not found"


def test_create_spark_returns_refined_fields(api_client, spark_refiner_fake):
    spark_refiner_fake.scenario = "refined"

    spark = api_client.post("/api/sparks", json={"title": "hiring", "initial_thoughts": "slow is fast"}).json()

    assert spark["title"] == "Refined: hiring"
    assert spark["initial_thoughts"] == "Refined: slow is fast"
    assert api_client.get(f"/api/sparks/{spark['id']}").json()["title"] == "Refined: hiring"
