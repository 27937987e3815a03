"""Functional endpoint-by-endpoint verification script.
Run inside the virtual environment:
  python functional_check.py
Outputs tuple of (status_code, heuristic_content_ok) per route.
"""

from app import create_app
from manage_quizzes import seed_quizzes

SAMPLE_QUIZ = {
    "id": "functional-check",
    "name": "Functional Check",
    "questions": [
        {"question": "2 + 2?", "options": ["3", "4"], "correctAnswer": "4"},
        {"question": "Capital of France?", "options": ["Paris", "Rome"], "correctAnswer": "Paris"},
    ],
}


def run_checks():
    app = create_app({"TESTING": True, "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:"})
    quiz_id = SAMPLE_QUIZ["id"]
    with app.app_context():
        seed_quizzes([SAMPLE_QUIZ])

    results = {}
    with app.test_client() as c:
        # Unrestricted quiz is readable from anywhere
        r = c.get(f"/api/public/embed/{quiz_id}", headers={"Origin": "https://anywhere.test"})
        results["data_open"] = (r.status_code, r.headers.get("Access-Control-Allow-Origin") == "*")

        # Viewer page must be frameable
        v = c.get(f"/embed/{quiz_id}")
        results["viewer"] = (
            v.status_code,
            "frame-ancestors *" in v.headers.get("Content-Security-Policy", "")
            and "X-Frame-Options" not in v.headers,
        )

        # Restrict to a domain, twice (idempotent)
        d1 = c.post(f"/api/public/embed/{quiz_id}/domains", json={"domain": "blog.example.com"})
        d2 = c.post(f"/api/public/embed/{quiz_id}/domains", json={"domain": "blog.example.com"})
        results["register_domain"] = (d1.status_code, d2.get_json() == {"success": True})

        allowed = c.get(f"/api/public/embed/{quiz_id}", headers={"Origin": "https://blog.example.com"})
        results["data_allowed"] = (
            allowed.status_code,
            allowed.get_json()["quiz"]["allowedEmbedDomains"] == ["blog.example.com"],
        )

        denied = c.get(f"/api/public/embed/{quiz_id}", headers={"Origin": "https://other.test"})
        results["data_denied"] = (denied.status_code, "error" in (denied.get_json() or {}))

        missing = c.get("/api/public/embed/no-such-quiz")
        results["data_missing"] = (missing.status_code, missing.status_code == 404)

        bad = c.post(f"/api/public/embed/{quiz_id}/domains", json={})
        results["register_invalid"] = (bad.status_code, bad.status_code == 400)

        share = c.post(f"/quizzes/{quiz_id}/embed-code", data={"domain": ""})
        results["embed_code"] = (share.status_code, "&lt;iframe" in share.get_data(as_text=True))

        # Everything else keeps anti-framing headers
        h = c.get("/healthz")
        results["security_headers"] = (h.status_code, h.headers.get("X-Frame-Options") == "DENY")

    return results


if __name__ == "__main__":
    for k, v in run_checks().items():
        print(f"{k}: {v}")
