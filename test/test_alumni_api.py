"""
Alumni profiles, mentor matching and student-alumni connections.
"""
import pytest

from conftest import register, login


def create_profile(client, school_id, **fields):
    payload = {
        "schoolId": school_id,
        "graduationYear": 2010,
        "currentOccupation": "Software Engineer",
        "organization": "Infosys",
        "expertiseAreas": ["Technology", "Career Guidance"],
        "bio": "Studied here till 10th.",
    }
    payload.update(fields)
    resp = client.post("/api/alumni", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture
def mentor(client, school_admin):
    """An alumnus (registered as a school-less student account) with a profile."""
    register(client, "kiran", "student")
    return create_profile(client, school_admin["schoolId"])


def test_create_and_filter_alumni(client, school_admin, mentor):
    register(client, "meera", "student")
    create_profile(
        client, school_admin["schoolId"] + 100,
        expertiseAreas=["Medicine"], isAvailableForMentoring=False
    )

    all_alumni = client.get("/api/alumni").json()
    assert len(all_alumni) == 2

    by_school = client.get("/api/alumni", params={"schoolId": school_admin["schoolId"]}).json()
    assert [a["id"] for a in by_school] == [mentor["id"]]

    by_expertise = client.get("/api/alumni", params={"expertise": "Medicine"}).json()
    assert len(by_expertise) == 1
    assert by_expertise[0]["expertiseAreas"] == ["Medicine"]

    available = client.get("/api/alumni", params={"available": "true"}).json()
    assert [a["id"] for a in available] == [mentor["id"]]


def test_only_owner_updates_profile(client, mentor):
    resp = client.put(f"/api/alumni/{mentor['id']}", json={"organization": "Wipro"})
    assert resp.status_code == 200
    assert resp.json()["organization"] == "Wipro"
    assert resp.json()["currentOccupation"] == "Software Engineer"

    register(client, "meera", "student")
    resp = client.put(f"/api/alumni/{mentor['id']}", json={"organization": "TCS"})
    assert resp.status_code == 403

    assert client.get("/api/alumni/999").status_code == 404


def test_match_uses_available_alumni(client, mentor, monkeypatch):
    seen = {}

    async def fake_match(title, details, category, available_alumni):
        seen["ids"] = [a["id"] for a in available_alumni]
        return {
            "suggestedAlumni": seen["ids"],
            "relevanceScores": {str(i): 90 for i in seen["ids"]},
            "recommendedExpertiseAreas": ["Technology"],
            "queryClassification": category,
        }

    monkeypatch.setattr("routers.alumni.find_alumni_matches", fake_match)
    resp = client.post("/api/alumni/match", json={
        "questionTitle": "Which stream after 10th?",
        "questionDetails": "I like computers and maths.",
        "category": "Career Guidance",
    })
    assert resp.status_code == 200
    assert resp.json()["suggestedAlumni"] == [mentor["id"]]
    assert seen["ids"] == [mentor["id"]]


def test_connection_flow(client, student, mentor):
    login(client, "ravi")
    resp = client.post("/api/connections", json={
        "alumniId": mentor["id"],
        "questionTitle": "Engineering entrance",
        "questionDetails": "How should I prepare for CET?",
        "category": "Engineering",
    })
    assert resp.status_code == 201
    connection = resp.json()
    assert connection["status"] == "pending"
    assert connection["studentId"] == student["id"]

    assert [c["id"] for c in client.get("/api/connections").json()] == [connection["id"]]

    # The student cannot answer their own question
    resp = client.post(f"/api/connections/{connection['id']}/responses", json={"response": "self"})
    assert resp.status_code == 403

    login(client, "kiran")
    # kiran is a student account, so the listing shows requests they sent (none)
    assert client.get("/api/connections").json() == []
    assert client.get(f"/api/connections/{connection['id']}").status_code == 200

    resp = client.put(f"/api/connections/{connection['id']}/status", json={"status": "answered"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "answered"

    resp = client.post(
        f"/api/connections/{connection['id']}/responses",
        json={"response": "Start with NCERT and past papers."}
    )
    assert resp.status_code == 201

    login(client, "ravi")
    thread = client.get(f"/api/connections/{connection['id']}/responses").json()
    assert [r["response"] for r in thread] == ["Start with NCERT and past papers."]


def test_alumnus_with_staff_account_lists_addressed_requests(client, student, school_admin):
    login(client, "headmaster")
    profile = create_profile(client, school_admin["schoolId"], currentOccupation="Headmaster")

    login(client, "ravi")
    connection = client.post("/api/connections", json={
        "alumniId": profile["id"],
        "questionTitle": "Library",
        "questionDetails": "Can alumni donate books?",
        "category": "Others",
    }).json()

    login(client, "headmaster")
    assert [c["id"] for c in client.get("/api/connections").json()] == [connection["id"]]


def test_connection_errors(client, student, mentor):
    login(client, "ravi")
    resp = client.post("/api/connections", json={
        "alumniId": 999,
        "questionTitle": "Q", "questionDetails": "D", "category": "Science",
    })
    assert resp.status_code == 404

    connection = client.post("/api/connections", json={
        "alumniId": mentor["id"],
        "questionTitle": "Q", "questionDetails": "D", "category": "Science",
    }).json()

    # A third party can neither view nor reply
    register(client, "outsider", "authority", district="Udupi")
    assert client.get(f"/api/connections/{connection['id']}").status_code == 403
    resp = client.post("/api/connections", json={
        "alumniId": mentor["id"],
        "questionTitle": "Q", "questionDetails": "D", "category": "Science",
    })
    assert resp.status_code == 403
    assert client.get("/api/connections/999").status_code == 404
