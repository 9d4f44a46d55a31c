import pytest

import reviewer
from errors import NotFound
from schemas import ResumeUpdate
from conftest import resume_content


def experienced_content():
    return resume_content(
        experience=[
            {"company": "Acme", "position": "Engineer", "start_date": "2021", "description": "Wrote code"},
            {"company": "Initech", "position": "Intern", "start_date": "2019", "end_date": "2020",
             "description": "Fixed printers"},
        ],
        skills=["Python", "SQL"],
    )


@pytest.fixture
def make_resume(client, auth_headers):
    def _make(title="My CV", content=None, headers=None, **extra):
        resp = client.post(
            "/api/resumes",
            json={"title": title, "content": content or experienced_content(), **extra},
            headers=headers or auth_headers,
        )
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()
    return _make


def test_create_and_get(client, auth_headers, make_resume):
    created = make_resume(ats_score=99)
    assert created["ats_score"] == 0
    assert created["template"] == "modern"
    assert created["created_at"] == created["updated_at"]

    fetched = client.get(f"/api/resumes/{created['id']}", headers=auth_headers).get_json()
    assert fetched["title"] == "My CV"
    assert fetched["content"]["experience"][0]["company"] == "Acme"


def test_requires_auth(client):
    resp = client.get("/api/resumes")
    assert resp.status_code == 401
    assert resp.get_json() == {"error": "Unauthorized"}


def test_create_rejects_bad_email(client, auth_headers):
    content = resume_content()
    content["basics"]["email"] = "nope"
    resp = client.post("/api/resumes", json={"title": "CV", "content": content}, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.get_json()["fields"][0]["field"] == "content.basics.email"


def test_list_is_own_resumes_newest_first(client, auth_headers, register, make_resume):
    first = make_resume("first")
    second = make_resume("second")
    other_headers, _ = register("mallory")
    make_resume("theirs", headers=other_headers)

    listed = client.get("/api/resumes", headers=auth_headers).get_json()
    assert [r["id"] for r in listed] == [second["id"], first["id"]]

    client.patch(f"/api/resumes/{first['id']}", json={"title": "first v2"}, headers=auth_headers)
    listed = client.get("/api/resumes", headers=auth_headers).get_json()
    assert [r["title"] for r in listed] == ["first v2", "second"]


def test_patch_cannot_set_ats_score(client, auth_headers, make_resume):
    created = make_resume()
    resp = client.patch(
        f"/api/resumes/{created['id']}", json={"ats_score": 99, "template": "classic"}, headers=auth_headers
    )
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["ats_score"] == 0
    assert body["template"] == "classic"


def test_missing_resume_is_404_and_foreign_is_403(client, auth_headers, register, make_resume):
    other_headers, _ = register("mallory")
    theirs = make_resume(headers=other_headers)

    missing = client.get("/api/resumes/does-not-exist", headers=auth_headers)
    assert missing.status_code == 404
    assert missing.get_json() == {"error": "Resume not found"}

    for method, suffix in [("get", ""), ("patch", ""), ("delete", ""), ("post", "/analyze"), ("get", "/latex")]:
        resp = getattr(client, method)(f"/api/resumes/{theirs['id']}{suffix}", json={}, headers=auth_headers)
        assert resp.status_code == 403, (method, suffix)
        assert resp.get_json() == {"error": "Access denied"}


def test_delete(client, auth_headers, make_resume):
    created = make_resume()
    resp = client.delete(f"/api/resumes/{created['id']}", headers=auth_headers)
    assert resp.get_json() == {"success": True, "deleted": created["id"]}
    assert client.get(f"/api/resumes/{created['id']}", headers=auth_headers).status_code == 404


def test_analyze_persists_score(client, auth_headers, make_resume, llm):
    created = make_resume()
    resp = client.post(
        f"/api/resumes/{created['id']}/analyze", json={"job_description": "Python role"}, headers=auth_headers
    )
    assert resp.status_code == 200
    analysis = resp.get_json()
    assert analysis["score"] == 78
    assert analysis["keywords"] == ["python", "flask"]

    stored = client.get(f"/api/resumes/{created['id']}", headers=auth_headers).get_json()
    assert stored["ats_score"] == analysis["score"]
    assert llm.calls[-1][1][1] == "Python role"


def test_analyze_failure_keeps_score(client, auth_headers, make_resume, llm):
    created = make_resume()
    client.post(f"/api/resumes/{created['id']}/analyze", headers=auth_headers)
    llm.failing.add("analyze_resume")

    resp = client.post(f"/api/resumes/{created['id']}/analyze", headers=auth_headers)
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "AI analyze_resume failed. Please try again."}
    stored = client.get(f"/api/resumes/{created['id']}", headers=auth_headers).get_json()
    assert stored["ats_score"] == 78


def test_optimize_returns_suggestions_without_saving(client, auth_headers, make_resume):
    created = make_resume()
    resp = client.post(
        f"/api/resumes/{created['id']}/optimize", json={"target_role": "Staff Engineer"}, headers=auth_headers
    )
    assert resp.status_code == 200
    opts = resp.get_json()["optimizations"]
    assert opts[0]["section"] == "summary"
    assert opts[0]["optimized"] == "Sharper summary"

    stored = client.get(f"/api/resumes/{created['id']}", headers=auth_headers).get_json()
    assert stored["content"]["basics"]["summary"] == "Backend engineer."


def test_apply_optimization_summary_and_experience(client, auth_headers, make_resume):
    created = make_resume()
    url = f"/api/resumes/{created['id']}/apply-optimization"

    resp = client.post(url, json={"section": "summary", "optimized_text": "Shipped things."}, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.get_json()["content"]["basics"]["summary"] == "Shipped things."

    resp = client.post(url, json={"section": "experience-1", "optimized_text": "Ran IT."}, headers=auth_headers)
    experience = resp.get_json()["content"]["experience"]
    assert experience[1]["description"] == "Ran IT."
    assert experience[0]["description"] == "Wrote code"


@pytest.mark.parametrize("section", ["experience-5", "skills"])
def test_apply_optimization_rejects_unknown_section(client, auth_headers, make_resume, section):
    created = make_resume()
    resp = client.post(
        f"/api/resumes/{created['id']}/apply-optimization",
        json={"section": section, "optimized_text": "x"},
        headers=auth_headers,
    )
    assert resp.status_code == 400
    assert resp.get_json()["fields"][0]["field"] == "section"


def test_latex_export(client, auth_headers, make_resume):
    created = make_resume("Senior Dev CV", template="classic")
    resp = client.get(f"/api/resumes/{created['id']}/latex", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.mimetype == "text/plain"
    assert resp.headers["Content-Disposition"] == 'attachment; filename="Senior_Dev_CV.tex"'
    text = resp.get_data(as_text=True)
    assert r"\section*{EXPERIENCE}" in text
    assert text.rstrip().endswith(r"\end{document}")


def test_update_of_resume_deleted_mid_request_is_404(store):
    resume = store.create_resume("u1", "CV", experienced_content())
    # owner check passes, then the row disappears before the write
    store.update_resume = lambda resume_id, updates: None
    with pytest.raises(NotFound):
        reviewer.update_resume(store, resume["id"], "u1", ResumeUpdate(title="x"))


def test_apply_optimization_to_deleted_resume_is_404(store):
    resume = store.create_resume("u1", "CV", experienced_content())
    store.delete_resume(resume["id"])
    with pytest.raises(NotFound) as exc:
        reviewer.apply_optimization(store, resume, "summary", "New summary")
    assert exc.value.message == "Resume not found"
