import pytest
from fastapi.testclient import TestClient
from justculture.main import app
from justculture.core.trees import STANDARD_TREE
from justculture.services.assessment_service import AssessmentService
from justculture.services.snapshot_store import SnapshotStore

@pytest.fixture
def client(tmp_path):
    original = app.state.assessment_service
    app.state.assessment_service = AssessmentService(STANDARD_TREE, SnapshotStore(str(tmp_path)))
    yield TestClient(app)
    app.state.assessment_service = original

def test_index_ready(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "Click Start to begin." in response.text
    assert "No decisions yet. Click Start." in response.text

def test_start_redirects_to_question(client):
    response = client.post("/assessment/start", follow_redirects=False)
    assert response.status_code == 303
    response = client.get(response.headers["location"])
    assert "Were the rules / procedures known and understood?" in response.text

def test_blank_explanation_flashes_message(client):
    client.post("/assessment/start")
    response = client.post("/assessment/answer", data={"answer": "yes", "explanation": " "})
    assert response.status_code == 200
    assert "Please add a short explanation before answering." in response.text
    # flash is shown once
    assert "Please add a short explanation" not in client.get("/").text

def test_complete_flow_shows_outcome(client):
    client.post("/assessment/metadata", data={"case_ref": "JC-<1>", "assessor": "Pat"})
    client.post("/assessment/start")
    response = client.post("/assessment/answer", data={"answer": "no", "explanation": "Never briefed"})
    assert "Outcome: Supervisor subject to Just Culture Process" in response.text
    assert "matrix-supervisor" in response.text
    assert "Step 1" in response.text
    assert "JC-&lt;1&gt;" in response.text

    response = client.post("/assessment/back")
    assert "Were the rules / procedures known and understood?" in response.text

def test_back_without_history_flashes(client):
    response = client.post("/assessment/back")
    assert "No previous question to go back to." in response.text

def test_remember_toggle(client):
    assert "Remember: Off" in client.get("/").text
    assert "Remember: On" in client.post("/assessment/remember").text
    assert "Remember: Off" in client.post("/assessment/remember").text

def test_print_requires_complete(client):
    response = client.get("/print")
    assert response.status_code == 409
    assert "Finish the decision first." in response.text

def test_print_view(client):
    client.post("/assessment/start")
    client.post("/assessment/answer", data={"answer": "yes", "explanation": "Trained"})
    client.post("/assessment/answer", data={"answer": "yes", "explanation": "Followed"})
    response = client.get("/print")
    assert response.status_code == 200
    assert "Expected Behaviour → Recognition" in response.text
    assert "Save as PDF" in response.text

def test_case_details_travel_with_answers(client):
    client.post("/assessment/start", data={"case_ref": "JC-11", "assessor": "Pat"})
    response = client.post("/assessment/answer", data={
        "answer": "no",
        "explanation": "Never briefed",
        "case_ref": "JC-11",
        "assessor": "Pat",
        "involved_name": "Sam",
        "notes": "",
    })
    assert "Case Ref: JC-11" in response.text
    assert "Subject: Sam" in response.text
    response = client.get("/print")
    assert "JC-11" in response.text
    assert "Sam" in response.text

def test_case_details_kept_when_answer_is_rejected(client):
    client.post("/assessment/start")
    response = client.post("/assessment/answer", data={"answer": "yes", "explanation": "", "assessor": "Pat"})
    assert "Please add a short explanation before answering." in response.text
    assert 'value="Pat"' in response.text

def test_buttons_share_one_form(client):
    client.post("/assessment/start")
    text = client.get("/").text
    assert text.count("<form") == 1
    assert 'formaction="/assessment/answer"' in text
    assert 'formaction="/assessment/reset"' in text
