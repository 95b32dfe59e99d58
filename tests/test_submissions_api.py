from datetime import timedelta

from gradekeeper.engine.enums import LifecycleState
from gradekeeper.models.assignment import Assignment
from tests.conftest import NOW, TestingSessionLocal, as_user


def _submit(client, seed, text="my answer", user="student"):
    return client.post(
        f"/assignments/{seed['published']}/submissions",
        headers=as_user(seed[user]),
        json={"text_content": text},
    )


def _set_status(assignment_id: int, status: LifecycleState) -> None:
    db = TestingSessionLocal()
    try:
        a = db.query(Assignment).filter(Assignment.id == assignment_id).first()
        a.status = status
        db.commit()
    finally:
        db.close()


def test_submit(client, seed):
    r = _submit(client, seed)
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["status"] == "submitted"
    assert body["student_id"] == seed["student"]
    assert body["text_content"] == "my answer"
    assert body["score"] is None


def test_second_submit_is_refused(client, seed):
    assert _submit(client, seed).status_code == 201
    r = _submit(client, seed, text="again")
    assert r.status_code == 403
    assert r.json()["reason"] == "already_submitted"


def test_submit_after_deadline_is_refused(client, seed, clock):
    clock.now = NOW + timedelta(days=1)
    r = _submit(client, seed)
    assert r.status_code == 403
    assert r.json()["reason"] == "deadline_passed"


def test_submit_to_draft_is_refused(client, seed):
    r = client.post(
        f"/assignments/{seed['draft']}/submissions",
        headers=as_user(seed["student"]),
        json={"text_content": "early"},
    )
    assert r.status_code == 403
    assert r.json()["reason"] == "assignment_not_published"


def test_submit_requires_text_for_text_assignments(client, seed):
    r = _submit(client, seed, text="  ")
    assert r.status_code == 400
    assert r.json()["code"] == "missing_content"


def test_update_before_deadline(client, seed, clock):
    sub_id = _submit(client, seed).json()["id"]

    clock.now = NOW + timedelta(hours=1)
    r = client.put(
        f"/submissions/{sub_id}",
        headers=as_user(seed["student"]),
        json={"text_content": "better answer"},
    )
    assert r.status_code == 200, r.text
    assert r.json()["text_content"] == "better answer"

    r = client.put(
        f"/submissions/{sub_id}",
        headers=as_user(seed["other"]),
        json={"text_content": "hijack"},
    )
    assert r.status_code == 403
    assert r.json()["reason"] == "not_owner"


def test_withdraw_and_resubmit(client, seed):
    sub_id = _submit(client, seed).json()["id"]

    r = client.delete(f"/submissions/{sub_id}", headers=as_user(seed["student"]))
    assert r.status_code == 200
    assert r.json()["withdrawn_at"] is not None

    assert client.get(f"/submissions/{sub_id}", headers=as_user(seed["student"])).status_code == 404

    r = _submit(client, seed, text="second try")
    assert r.status_code == 201
    assert r.json()["id"] == sub_id
    assert r.json()["withdrawn_at"] is None


def test_withdraw_after_deadline_is_allowed_while_published(client, seed, clock):
    sub_id = _submit(client, seed).json()["id"]
    clock.now = NOW + timedelta(days=3)
    r = client.delete(f"/submissions/{sub_id}", headers=as_user(seed["student"]))
    assert r.status_code == 200


def test_withdraw_after_completion_is_refused(client, seed):
    sub_id = _submit(client, seed).json()["id"]
    _set_status(seed["published"], LifecycleState.COMPLETED)

    r = client.delete(f"/submissions/{sub_id}", headers=as_user(seed["student"]))
    assert r.status_code == 403
    assert r.json()["code"] == "not_permitted"
    assert r.json()["reason"] == "assignment_not_published"


def test_only_owner_withdraws(client, seed):
    sub_id = _submit(client, seed).json()["id"]
    r = client.delete(f"/submissions/{sub_id}", headers=as_user(seed["other"]))
    assert r.status_code == 403


def test_grade_with_rubric(client, seed):
    sub_id = _submit(client, seed).json()["id"]
    r = client.patch(
        f"/submissions/{sub_id}/grade",
        headers=as_user(seed["instructor"]),
        json={"rubric_scores": {"0": 25, "1": 20}, "feedback": "Nice"},
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["status"] == "graded"
    assert body["score"] == 45
    assert body["percentage"] == 90
    assert body["rubric_scores"] == {"0": 25.0, "1": 20.0}
    assert body["feedback"] == "Nice"


def test_manual_total_overrides_rubric(client, seed):
    sub_id = _submit(client, seed).json()["id"]
    r = client.patch(
        f"/submissions/{sub_id}/grade",
        headers=as_user(seed["admin"]),
        json={"rubric_scores": {"0": 10}, "manual_total": 40},
    )
    assert r.status_code == 200, r.text
    assert r.json()["score"] == 40
    assert r.json()["percentage"] == 80


def test_score_above_criterion_max_is_rejected(client, seed):
    sub_id = _submit(client, seed).json()["id"]
    r = client.patch(
        f"/submissions/{sub_id}/grade",
        headers=as_user(seed["instructor"]),
        json={"rubric_scores": {"1": 21}},
    )
    assert r.status_code == 400
    body = r.json()
    assert body["code"] == "score_out_of_bounds"
    assert body["criterion_index"] == 1
    assert body["maximum"] == 20


def test_manual_total_above_max_is_rejected(client, seed):
    sub_id = _submit(client, seed).json()["id"]
    r = client.patch(
        f"/submissions/{sub_id}/grade",
        headers=as_user(seed["instructor"]),
        json={"manual_total": 51},
    )
    assert r.status_code == 400
    assert r.json()["code"] == "score_out_of_bounds"


def test_grading_needs_scores_or_total(client, seed):
    sub_id = _submit(client, seed).json()["id"]
    r = client.patch(f"/submissions/{sub_id}/grade", headers=as_user(seed["instructor"]), json={})
    assert r.status_code == 400


def test_students_cannot_grade(client, seed):
    sub_id = _submit(client, seed).json()["id"]
    r = client.patch(
        f"/submissions/{sub_id}/grade",
        headers=as_user(seed["student"]),
        json={"manual_total": 50},
    )
    assert r.status_code == 403


def test_grading_allowed_after_completion_and_deadline(client, seed, clock):
    sub_id = _submit(client, seed).json()["id"]
    _set_status(seed["published"], LifecycleState.COMPLETED)
    clock.now = NOW + timedelta(days=10)

    r = client.patch(
        f"/submissions/{sub_id}/grade",
        headers=as_user(seed["instructor"]),
        json={"manual_total": 50},
    )
    assert r.status_code == 200
    assert r.json()["percentage"] == 100


def test_graded_submission_cannot_be_updated(client, seed):
    sub_id = _submit(client, seed).json()["id"]
    client.patch(
        f"/submissions/{sub_id}/grade",
        headers=as_user(seed["instructor"]),
        json={"manual_total": 30},
    )
    r = client.put(
        f"/submissions/{sub_id}",
        headers=as_user(seed["student"]),
        json={"text_content": "too late"},
    )
    assert r.status_code == 403
    assert r.json()["reason"] == "already_graded"


def test_list_submissions_for_grader(client, seed):
    mine = _submit(client, seed).json()["id"]
    theirs = _submit(client, seed, user="other").json()["id"]
    client.delete(f"/submissions/{theirs}", headers=as_user(seed["other"]))

    url = f"/assignments/{seed['published']}/submissions"
    r = client.get(url, headers=as_user(seed["instructor"]))
    assert r.status_code == 200
    assert [s["id"] for s in r.json()] == [mine]

    r = client.get(url + "?include_withdrawn=true", headers=as_user(seed["instructor"]))
    assert [s["id"] for s in r.json()] == [mine, theirs]

    assert client.get(url, headers=as_user(seed["outsider"])).status_code == 403
    assert client.get(url, headers=as_user(seed["student"])).status_code == 403


def test_non_finite_scores_are_validation_errors(client, seed):
    sub_id = _submit(client, seed).json()["id"]
    headers = {**as_user(seed["instructor"]), "Content-Type": "application/json"}

    for body in ('{"manual_total": NaN}', '{"manual_total": Infinity}', '{"rubric_scores": {"0": NaN}}'):
        r = client.patch(f"/submissions/{sub_id}/grade", headers=headers, content=body)
        assert r.status_code == 422, body
        assert r.json()["detail"][0]["input"] in ("nan", "inf")

    r = client.get(f"/submissions/{sub_id}", headers=as_user(seed["instructor"]))
    assert r.json()["status"] == "submitted"
