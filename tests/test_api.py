"""End-to-end tests through the HTTP API."""

import asyncio
import json
from pathlib import Path

import pytest

from onboarding.api import deps
from onboarding.services.chat.responder import DEFAULT_MESSAGE
from onboarding.services.onboarding_service import UPLOAD_ERROR_MESSAGE
from onboarding.services.payments.gateway import compute_payment_signature, compute_webhook_signature

from tests.conftest import auth_headers, classification

API = "/api/v1"
PDF = ("aadhaar.pdf", b"%PDF-1.4 aadhaar", "application/pdf")


@pytest.fixture
def profile(client, student_headers):
    response = client.post(f"{API}/profile", json={"fullName": "Asha Rao"}, headers=student_headers)
    assert response.status_code == 201
    return response.json()


def upload(client, headers, *files):
    return client.post(
        f"{API}/documents/upload",
        files=[("files", file) for file in files],
        headers=headers,
    )


def chat_history(client, headers):
    response = client.get(f"{API}/chat/history", headers=headers)
    assert response.status_code == 200
    return response.json()


def pay(client, headers, amount):
    order = client.post(f"{API}/payment/create-order", json={"amount": amount}, headers=headers).json()
    payment_id = f"pay_{order['id']}"
    body = {
        "orderId": order["id"],
        "paymentId": payment_id,
        "signature": compute_payment_signature(order["id"], payment_id),
    }
    return order, body


def test_health(client):
    assert client.get(f"{API}/health").json() == {"status": "ok"}


class TestProfile:
    def test_requires_bearer_token(self, client):
        response = client.get(f"{API}/profile")
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTHENTICATION_FAILED"

    def test_missing_profile_is_404(self, client, student_headers):
        assert client.get(f"{API}/profile", headers=student_headers).status_code == 404

    def test_new_profile_starts_empty(self, profile):
        assert profile["studentId"] == "student-1"
        assert profile["fullName"] == "Asha Rao"
        assert profile["documents"] == []
        assert profile["fee"]["totalAmount"] == 50000
        assert profile["fee"]["status"] == "unpaid"
        assert profile["hostel"]["status"] == "not_applied"
        assert profile["lms"]["status"] == "inactive"
        assert profile["progressPercentage"] == 0

    def test_create_is_idempotent(self, client, student_headers, profile):
        again = client.post(f"{API}/profile", json={"fullName": "Someone Else"}, headers=student_headers)
        assert again.json()["fullName"] == "Asha Rao"

    def test_staff_cannot_use_student_routes(self, client, staff_headers):
        assert client.get(f"{API}/profile", headers=staff_headers).status_code == 403


class TestDocuments:
    def test_confident_upload_appends_record(self, client, student_headers, backend, profile):
        backend.queue(classification("Aadhaar Card", 85))

        response = upload(client, student_headers, PDF)

        assert response.status_code == 200
        body = response.json()
        assert body["results"][0]["status"] == "mapped"
        assert body["results"][0]["action"] == "appended"
        assert [doc["documentType"] for doc in body["documents"]] == ["Aadhaar Card"]
        assert body["documents"][0]["status"] == "uploaded"

    def test_reupload_replaces_record_and_deletes_old_file(self, client, student_headers, backend, profile):
        backend.queue(classification("Aadhaar Card", 90), classification("Aadhaar Card", 85))
        first = upload(client, student_headers, PDF).json()["documents"][0]

        second = upload(client, student_headers, ("aadhaar-new.pdf", b"%PDF new", "application/pdf")).json()

        assert second["results"][0]["action"] == "replaced"
        assert len(second["documents"]) == 1
        assert second["documents"][0]["id"] == first["id"]
        assert second["documents"][0]["originalName"] == "aadhaar-new.pdf"
        assert not Path(first["filePath"]).exists()
        assert Path(second["documents"][0]["filePath"]).exists()

    def test_low_confidence_upload_leaves_profile_unchanged(self, client, student_headers, backend, profile):
        backend.queue(classification("PAN Card", 40))

        body = upload(client, student_headers, ("pan.png", b"\x89PNG", "image/png")).json()

        assert body["results"][0]["status"] == "low_confidence"
        assert body["documents"] == []
        messages = [entry["message"] for entry in chat_history(client, student_headers)]
        assert messages[0] == "pan.png"
        assert "We are not confident about this document (Detected: PAN Card, Confidence: 40%)" in messages[1]

    def test_batch_is_processed_in_order(self, client, student_headers, backend, profile):
        backend.queue(classification("PAN Card", 95), classification("Other", 99), classification("Signature", 80))

        body = upload(
            client,
            student_headers,
            ("pan.pdf", b"pan", "application/pdf"),
            ("selfie.jpg", b"selfie", "image/jpeg"),
            ("sign.png", b"sign", "image/png"),
        ).json()

        assert [item["status"] for item in body["results"]] == ["mapped", "low_confidence", "mapped"]
        assert [doc["documentType"] for doc in body["documents"]] == ["PAN Card", "Signature"]
        assert body["progressPercentage"] == 0

    def test_classifier_failure_returns_500_and_logs_chat(self, client, student_headers, backend, profile):
        backend.queue(RuntimeError("quota exceeded"))

        response = upload(client, student_headers, PDF)

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "CLASSIFIER_FAILURE"
        history = chat_history(client, student_headers)
        assert history[-1]["sender"] == "assistant"
        assert history[-1]["message"] == UPLOAD_ERROR_MESSAGE
        assert client.get(f"{API}/profile", headers=student_headers).json()["documents"] == []

    def test_failure_later_in_batch_keeps_earlier_files(self, client, student_headers, backend, profile):
        backend.queue(classification("PAN Card", 95), RuntimeError("quota"))

        response = upload(
            client,
            student_headers,
            ("pan.pdf", b"pan", "application/pdf"),
            ("marks.pdf", b"marks", "application/pdf"),
        )

        assert response.status_code == 200
        body = response.json()
        assert [item["status"] for item in body["results"]] == ["mapped", "error"]
        stored = client.get(f"{API}/profile", headers=student_headers).json()["documents"]
        assert [doc["documentType"] for doc in stored] == ["PAN Card"]
        assert chat_history(client, student_headers)[-1]["message"].startswith(UPLOAD_ERROR_MESSAGE)

    def test_disallowed_extension_is_rejected(self, client, student_headers, profile):
        response = upload(client, student_headers, ("run.exe", b"MZ", "application/octet-stream"))
        assert response.status_code == 400

    def test_upload_without_files_is_400(self, client, student_headers, profile):
        response = client.post(f"{API}/documents/upload", headers=student_headers)
        assert response.status_code == 400

    def test_chat_upload_single_file(self, client, student_headers, backend, profile):
        backend.queue(classification("10th Marksheet", 92))

        response = client.post(f"{API}/chat/upload", files={"file": PDF}, headers=student_headers)

        body = response.json()
        assert response.status_code == 200
        assert body["mapped"] is True
        assert body["classification"] == {"documentType": "10th Marksheet", "confidence": 92}
        assert "Document detected as **10th Marksheet** (92% confidence)" in body["message"]


class TestReview:
    @pytest.fixture
    def submitted(self, client, student_headers, backend, profile):
        backend.queue(classification("Aadhaar Card", 85))
        upload(client, student_headers, PDF)
        response = client.post(f"{API}/documents/submit", headers=student_headers)
        assert response.status_code == 200
        assert response.json()["submitted"] == ["Aadhaar Card"]

    def test_submitted_slot_is_locked(self, client, student_headers, backend, submitted):
        backend.queue(classification("Aadhaar Card", 99))

        body = upload(client, student_headers, ("again.pdf", b"again", "application/pdf")).json()

        assert body["results"][0]["status"] == "locked"
        assert body["documents"][0]["originalName"] == "aadhaar.pdf"
        assert body["documents"][0]["status"] == "submitted"

    def test_rejection_requires_reason(self, client, staff_headers, submitted):
        response = client.put(
            f"{API}/staff/documents/student-1", json={"status": "rejected"}, headers=staff_headers
        )
        assert response.status_code == 400

    def test_staff_rejection_is_visible_to_student(self, client, student_headers, staff_headers, submitted):
        response = client.put(
            f"{API}/staff/documents/student-1",
            json={"status": "rejected", "rejectionReason": "Image is blurry"},
            headers=staff_headers,
        )
        assert response.status_code == 200
        assert response.json()["documents"][0]["rejectionReason"] == "Image is blurry"

        reply = client.post(f"{API}/chat/text", json={"message": "any document issues?"}, headers=student_headers)
        assert "Image is blurry" in reply.json()["message"]

    def test_approval_completes_documents_module(self, client, admin_headers, submitted):
        response = client.put(
            f"{API}/staff/documents/student-1", json={"status": "approved"}, headers=admin_headers
        )
        assert response.json()["progressPercentage"] == 25

    def test_students_cannot_review(self, client, student_headers, submitted):
        response = client.put(
            f"{API}/staff/documents/student-1", json={"status": "approved"}, headers=student_headers
        )
        assert response.status_code == 403


class TestChat:
    def test_text_reply_and_history_order(self, client, student_headers, profile):
        reply = client.post(f"{API}/chat/text", json={"message": "what is my fee status"}, headers=student_headers)

        assert reply.status_code == 200
        assert reply.json()["sender"] == "assistant"
        assert "₹50,000" in reply.json()["message"]

        history = chat_history(client, student_headers)
        assert [(entry["sender"], entry["message"]) for entry in history][0] == ("student", "what is my fee status")
        assert history[1]["id"] == reply.json()["id"]

    def test_unknown_question_gets_default_reply(self, client, student_headers, profile):
        reply = client.post(f"{API}/chat/text", json={"message": "sing me a song"}, headers=student_headers)
        assert reply.json()["message"] == DEFAULT_MESSAGE

    def test_blank_message_is_400(self, client, student_headers, profile):
        response = client.post(f"{API}/chat/text", json={"message": "   "}, headers=student_headers)
        assert response.status_code == 400
        assert chat_history(client, student_headers) == []


class TestPayments:
    def test_full_payment_marks_fee_paid(self, client, student_headers, profile):
        order, body = pay(client, student_headers, 50000)
        assert order["amount"] == 5000000
        assert order["notes"]["student_id"] == "student-1"

        response = client.post(f"{API}/payment/verify", json=body, headers=student_headers)

        assert response.status_code == 200
        result = response.json()
        assert result["status"] == "paid"
        assert result["remaining"] == 0
        fee = client.get(f"{API}/profile", headers=student_headers).json()["fee"]
        assert fee["status"] == "paid"
        assert len(fee["history"]) == 1
        assert fee["remaining"] == 0

    def test_retried_verification_is_applied_once(self, client, student_headers, profile):
        _, body = pay(client, student_headers, 20000)

        first = client.post(f"{API}/payment/verify", json=body, headers=student_headers).json()
        retry = client.post(f"{API}/payment/verify", json=body, headers=student_headers).json()

        assert first["alreadyApplied"] is False
        assert retry["alreadyApplied"] is True
        summary = client.get(f"{API}/payment/summary", headers=student_headers).json()
        assert summary["paidAmount"] == 20000
        assert summary["status"] == "partial"
        assert len(summary["history"]) == 1

    def test_checkout_field_names_are_accepted(self, client, student_headers, profile):
        _, body = pay(client, student_headers, 1000)
        checkout = {
            "razorpay_order_id": body["orderId"],
            "razorpay_payment_id": body["paymentId"],
            "razorpay_signature": body["signature"],
        }
        assert client.post(f"{API}/payment/verify", json=checkout, headers=student_headers).status_code == 200

    def test_bad_signature_is_rejected_without_mutation(self, client, student_headers, profile):
        _, body = pay(client, student_headers, 50000)
        body["signature"] = "0" * 64

        response = client.post(f"{API}/payment/verify", json=body, headers=student_headers)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "SIGNATURE_MISMATCH"
        assert client.get(f"{API}/payment/summary", headers=student_headers).json()["paidAmount"] == 0

    def test_order_requires_amount(self, client, student_headers, profile):
        response = client.post(f"{API}/payment/create-order", json={}, headers=student_headers)
        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Please provide amount"

    def test_webhook_applies_captured_payment_once(self, client, student_headers, gateway, profile):
        gateway.add_order("order_hook", 1500000, student_id="student-1")
        payload = {
            "event": "payment.captured",
            "payload": {"payment": {"entity": {"id": "pay_hook", "order_id": "order_hook", "notes": {}}}},
        }
        raw = json.dumps(payload).encode()
        headers = {"X-Razorpay-Signature": compute_webhook_signature(raw), "Content-Type": "application/json"}

        first = client.post(f"{API}/payment/webhook", content=raw, headers=headers)
        second = client.post(f"{API}/payment/webhook", content=raw, headers=headers)

        assert first.json()["status"] == "applied"
        assert second.json()["status"] == "already_applied"
        summary = client.get(f"{API}/payment/summary", headers=student_headers).json()
        assert summary["paidAmount"] == 15000
        assert summary["history"][0]["source"] == "webhook"

    def test_webhook_gateway_work_runs_off_the_event_loop(self, client, gateway, profile):
        gateway.add_order("order_hook", 500000, student_id="student-1")
        fetch_order = gateway.fetch_order
        threads = []

        def fetch_off_loop(order_id):
            try:
                asyncio.get_running_loop()
                threads.append("event-loop")
            except RuntimeError:
                threads.append("worker")
            return fetch_order(order_id)

        gateway.fetch_order = fetch_off_loop
        raw = json.dumps({
            "event": "payment.captured",
            "payload": {"payment": {"entity": {"id": "pay_hook", "order_id": "order_hook", "notes": {}}}},
        }).encode()

        response = client.post(
            f"{API}/payment/webhook", content=raw, headers={"X-Razorpay-Signature": compute_webhook_signature(raw)}
        )

        assert response.json()["status"] == "applied"
        assert threads
        assert set(threads) == {"worker"}

    def test_webhook_with_bad_signature_is_rejected(self, client, gateway, profile):
        raw = json.dumps({"event": "payment.captured"}).encode()
        response = client.post(
            f"{API}/payment/webhook", content=raw, headers={"X-Razorpay-Signature": "forged"}
        )
        assert response.status_code == 400

    def test_other_webhook_events_are_ignored(self, client, profile):
        raw = json.dumps({"event": "order.paid"}).encode()
        response = client.post(
            f"{API}/payment/webhook", content=raw, headers={"X-Razorpay-Signature": compute_webhook_signature(raw)}
        )
        assert response.json()["status"] == "ignored"


class TestHostel:
    def test_apply_and_reject_with_default_reason(self, client, student_headers, admin_headers, profile):
        applied = client.post(f"{API}/hostel/apply", json={"roomType": "double"}, headers=student_headers)
        assert applied.json()["status"] == "pending"

        pending = client.get(f"{API}/admin/hostel-applications?status=pending", headers=admin_headers).json()
        assert [entry["studentId"] for entry in pending] == ["student-1"]

        decided = client.put(
            f"{API}/admin/hostel-applications/student-1", json={"status": "rejected"}, headers=admin_headers
        )
        assert decided.status_code == 200
        assert decided.json()["hostel"]["rejectionReason"] == "Application rejected by admin"

        again = client.post(f"{API}/hostel/apply", json={}, headers=student_headers)
        assert again.json()["status"] == "pending"
        assert again.json()["rejectionReason"] is None

    def test_double_application_is_a_conflict(self, client, student_headers, profile):
        client.post(f"{API}/hostel/apply", json={}, headers=student_headers)
        response = client.post(f"{API}/hostel/apply", json={}, headers=student_headers)
        assert response.status_code == 409

    def test_students_cannot_decide(self, client, student_headers, profile):
        client.post(f"{API}/hostel/apply", json={}, headers=student_headers)
        response = client.put(
            f"{API}/admin/hostel-applications/student-1", json={"status": "approved"}, headers=student_headers
        )
        assert response.status_code == 403

    def test_approval_is_announced_in_chat(self, client, student_headers, admin_headers, profile):
        client.post(f"{API}/hostel/apply", json={}, headers=student_headers)
        client.put(f"{API}/admin/hostel-applications/student-1", json={"status": "approved"}, headers=admin_headers)

        assert "approved" in chat_history(client, student_headers)[-1]["message"]


def test_subject_registration_activates_lms(client, student_headers, profile):
    response = client.post(
        f"{API}/lms/subjects", json={"subjects": ["CS101", "cs101", " MA102 "]}, headers=student_headers
    )

    body = response.json()
    assert body["added"] == ["CS101", "MA102"]
    assert body["lms"]["status"] == "active"
    assert body["progressPercentage"] == 25


def test_full_onboarding_reaches_one_hundred(client, student_headers, admin_headers, backend, profile):
    backend.queue(classification("Aadhaar Card", 85))
    upload(client, student_headers, PDF)
    client.post(f"{API}/documents/submit", headers=student_headers)
    client.put(f"{API}/staff/documents/student-1", json={"status": "approved"}, headers=admin_headers)
    _, body = pay(client, student_headers, 50000)
    client.post(f"{API}/payment/verify", json=body, headers=student_headers)
    client.post(f"{API}/hostel/apply", json={}, headers=student_headers)
    client.put(f"{API}/admin/hostel-applications/student-1", json={"status": "approved"}, headers=admin_headers)
    client.post(f"{API}/lms/subjects", json={"subjects": ["CS101"]}, headers=student_headers)

    assert client.get(f"{API}/profile", headers=student_headers).json()["progressPercentage"] == 100

    analytics = client.get(f"{API}/admin/analytics", headers=admin_headers).json()
    assert analytics == {
        "totalStudents": 1,
        "completedOnboarding": 1,
        "pendingDocuments": 0,
        "feePendingCount": 0,
    }


class TestAdmin:
    def test_analytics_counts(self, client, admin_headers, backend, student_headers, profile):
        other = auth_headers("student-2", name="Ravi Kumar")
        client.post(f"{API}/profile", headers=other)
        backend.queue(classification("PAN Card", 90))
        upload(client, other, ("pan.pdf", b"pan", "application/pdf"))

        analytics = client.get(f"{API}/admin/analytics", headers=admin_headers).json()

        assert analytics["totalStudents"] == 2
        assert analytics["completedOnboarding"] == 0
        assert analytics["pendingDocuments"] == 1
        assert analytics["feePendingCount"] == 2

    def test_student_listing(self, client, admin_headers, profile):
        students = client.get(f"{API}/admin/students", headers=admin_headers).json()

        assert len(students) == 1
        assert students[0]["studentId"] == "student-1"
        assert students[0]["documentsStatus"] == "not_started"
        assert students[0]["feeStatus"] == "unpaid"

    def test_payment_ledger(self, client, admin_headers, student_headers, profile):
        _, body = pay(client, student_headers, 1000)
        client.post(f"{API}/payment/verify", json=body, headers=student_headers)

        payments = client.get(f"{API}/admin/payments", headers=admin_headers).json()

        assert [(entry["studentName"], entry["amount"]) for entry in payments] == [("Asha Rao", 1000)]

    def test_staff_cannot_read_admin_reports(self, client, staff_headers):
        assert client.get(f"{API}/admin/analytics", headers=staff_headers).status_code == 403


def test_integration_providers_are_built_once_per_process():
    deps.get_payment_gateway.cache_clear()
    deps.get_classifier_backend.cache_clear()
    try:
        gateway = deps.get_payment_gateway()

        assert deps.get_payment_gateway() is gateway
        assert deps.get_classifier_backend() is deps.get_classifier_backend()
        # No order call yet, so no SDK client either
        assert gateway._client is None
    finally:
        deps.get_payment_gateway.cache_clear()
        deps.get_classifier_backend.cache_clear()
