import smtplib
from datetime import date

from exam_backend.routes.notifications import generate_otp
from exam_backend.services import email_service
from exam_backend.services.certificate import render_certificate


def test_generate_otp_is_five_digits():
    for _ in range(200):
        otp = generate_otp()
        assert len(otp) == 5
        assert otp.isdigit()
        assert 10000 <= int(otp) <= 99999


def test_send_otp_returns_emailed_code(client, sent_emails):
    resp = client.post("/send-otp", json={"email": "an@example.com"})

    assert resp.status_code == 200
    otp = resp.json()["otp"]
    assert len(sent_emails) == 1
    assert sent_emails[0]["to"] == "an@example.com"
    assert otp in sent_emails[0]["text"]


def test_send_otp_rejects_invalid_email(client, sent_emails):
    resp = client.post("/send-otp", json={"email": "not-an-email"})

    assert resp.status_code == 400
    assert sent_emails == []


def test_send_otp_transport_failure(client, monkeypatch):
    def broken_send(*args, **kwargs):
        raise smtplib.SMTPServerDisconnected("connection lost")

    monkeypatch.setattr(email_service, "_send", broken_send)

    resp = client.post("/send-otp", json={"email": "an@example.com"})

    assert resp.status_code == 500
    assert "connection lost" not in resp.json()["detail"]


def test_send_certificate(client, sent_emails):
    resp = client.post("/send-certificate", json={
        "email": "an@example.com",
        "recipientName": "Nguyen Van An",
        "score": 7.5,
        "examId": 42,
    })

    assert resp.status_code == 200
    assert resp.json()["examId"] == 42
    html = sent_emails[0]["html"]
    assert "Nguyen Van An" in html
    assert "7.5 / 10" in html
    assert "/42" in html


def test_send_certificate_without_exam_id_has_no_review_link(client, sent_emails):
    resp = client.post("/send-certificate", json={
        "email": "an@example.com",
        "recipientName": "Nguyen Van An",
        "score": 10,
    })

    assert resp.status_code == 200
    assert "Review your work" not in sent_emails[0]["html"]


def test_send_certificate_validates_score(client, sent_emails):
    for score in (-0.5, 10.1):
        resp = client.post("/send-certificate", json={
            "email": "an@example.com",
            "recipientName": "Nguyen Van An",
            "score": score,
        })
        assert resp.status_code == 400

    resp = client.post("/send-certificate", json={"email": "an@example.com", "recipientName": "An"})
    assert resp.status_code == 400
    assert sent_emails == []


def test_certificate_escapes_recipient_name():
    html = render_certificate("<script>x</script>", 9, issued_on=date(2026, 10, 19))

    assert "<script>x</script>" not in html
    assert "&lt;script&gt;" in html
    assert "October 19, 2026" in html
    assert "9.0 / 10" in html
