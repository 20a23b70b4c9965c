from datetime import timedelta

import pytest

from app.domain.email.service import EmailService
from app.domain.email.types import EmailPriority
from app.shared.errors import BadRequest, DispatchFailure


@pytest.fixture()
def service(email_queue) -> EmailService:
    return EmailService(email_queue)


def custom(to: str, /, **overrides) -> dict:
    return {"to": to, "template": "notification", "variables": {"title": "Hi", "message": "Hello"}, **overrides}


class TestTemplateSends:
    async def test_magic_link_is_queued(self, service, email_queue):
        job_id = await service.send_magic_link("pat@example.com", "https://app/magic?t=1", "Pat")

        assert job_id in email_queue.jobs
        email = email_queue.jobs[job_id]["email"]
        assert email.template == "magic-link"
        assert email.priority == EmailPriority.HIGH
        assert email.variables["magicLink"] == "https://app/magic?t=1"
        assert email.variables["expiresIn"] == "15 minutes"
        assert email.variables["appName"] == service.app_name

    async def test_missing_fields_are_listed_and_nothing_is_queued(self, service, email_queue):
        with pytest.raises(BadRequest) as exc:
            await service.send_magic_link("pat@example.com", None, "  ")

        assert exc.value.detail == "Missing required fields: magicLink, name"
        assert email_queue.jobs == {}

    @pytest.mark.parametrize(
        "send, args",
        [
            ("send_otp", ("pat@example.com", "123456", "")),
            ("send_password_reset", ("", "https://app/reset", "Pat")),
            ("send_email_verification", ("pat@example.com", "", "Pat")),
            ("send_welcome", ("pat@example.com", None)),
        ],
    )
    async def test_required_fields(self, service, email_queue, send, args):
        with pytest.raises(BadRequest):
            await getattr(service, send)(*args)

        assert email_queue.jobs == {}

    async def test_welcome_priority_and_optional_link(self, service, email_queue):
        job_id = await service.send_welcome("pat@example.com", "Pat")

        email = email_queue.jobs[job_id]["email"]
        assert email.priority == EmailPriority.NORMAL
        assert "loginLink" not in email.variables

    async def test_account_locked_is_critical(self, service, email_queue):
        job_id = await service.send_account_locked("pat@example.com", "Pat", "https://app/unlock")

        assert email_queue.jobs[job_id]["email"].priority == EmailPriority.CRITICAL

    async def test_newsletter_is_low_priority(self, service, email_queue):
        job_id = await service.send_newsletter("pat@example.com", "Pat", "<p>News</p>", "https://app/unsub")

        assert email_queue.jobs[job_id]["email"].priority == EmailPriority.LOW

    async def test_queue_failure_surfaces(self, service, email_queue):
        email_queue.down = True

        with pytest.raises(DispatchFailure) as exc:
            await service.send_otp("pat@example.com", "123456", "Pat")

        assert exc.value.status_code == 500


class TestCustomSend:
    async def test_custom_email(self, service, email_queue):
        job_id = await service.send_email(custom("pat@example.com", subject="Court closed", priority=3))

        email = email_queue.jobs[job_id]["email"]
        assert email.subject == "Court closed"
        assert email.priority == EmailPriority.HIGH

    async def test_unknown_priority_falls_back_to_normal(self, service, email_queue):
        job_id = await service.send_email(custom("pat@example.com", priority="urgent"))

        assert email_queue.jobs[job_id]["email"].priority == EmailPriority.NORMAL

    async def test_unknown_template(self, service, email_queue):
        with pytest.raises(BadRequest):
            await service.send_email(custom("pat@example.com", template="birthday"))

        assert email_queue.jobs == {}

    async def test_missing_variables(self, service):
        with pytest.raises(BadRequest) as exc:
            await service.send_email({"to": "pat@example.com", "template": "welcome"})

        assert "variables" in exc.value.detail

    async def test_invalid_send_at(self, service):
        with pytest.raises(BadRequest):
            await service.send_email(custom("pat@example.com", sendAt="tomorrow"))

    @pytest.mark.parametrize(
        "overrides",
        [
            {"template": ["welcome"]},
            {"template": {"x": 1}},
            {"to": {"address": "pat@example.com"}},
            {"to": ["pat@example.com", 7]},
            {"variables": ["title", "message"]},
            {"attachments": "receipt.pdf"},
        ],
    )
    async def test_malformed_fields_are_bad_requests(self, service, email_queue, overrides):
        with pytest.raises(BadRequest):
            await service.send_email(custom("pat@example.com", **overrides))

        assert email_queue.jobs == {}

    async def test_attachment_paths_are_rejected(self, service, email_queue):
        request = custom("pat@example.com", attachments=[{"filename": "hosts", "path": "/etc/hosts"}])

        with pytest.raises(BadRequest) as exc:
            await service.send_email(request)

        assert "file paths" in exc.value.detail
        assert email_queue.jobs == {}

    async def test_inline_attachment_is_queued(self, service, email_queue):
        request = custom("pat@example.com", attachments=[{"filename": "note.txt", "content": "see you at 10"}])

        job_id = await service.send_email(request)

        assert email_queue.jobs[job_id]["email"].attachments[0].content == "see you at 10"

    async def test_future_send_at_is_delayed(self, service, email_queue):
        job_id = await service.send_email(custom("pat@example.com", sendAt="2999-01-01T09:00:00Z"))

        status = await service.get_job_status(job_id)
        assert status.status == "delayed"


class TestBulkSend:
    async def test_ids_follow_input_order(self, service, email_queue):
        recipients = ["a@example.com", "b@example.com", "c@example.com"]

        result = await service.send_bulk_emails([custom(to) for to in recipients])

        assert len(result.job_ids) == 3
        assert [email_queue.jobs[job_id]["email"].to for job_id in result.job_ids] == recipients
        assert result.errors == []

    async def test_invalid_entries_do_not_stop_valid_ones(self, service, email_queue):
        result = await service.send_bulk_emails(
            [custom("a@example.com"), {"to": "b@example.com"}, custom("c@example.com")]
        )

        assert result.job_ids[1] is None
        assert len(result.queued) == 2
        assert [e.to for e in email_queue.queued_emails()] == ["a@example.com", "c@example.com"]
        assert result.errors[0]["index"] == 1

    async def test_malformed_template_only_rejects_its_entry(self, service, email_queue):
        result = await service.send_bulk_emails(
            [custom("a@example.com"), custom("b@example.com", template={"x": 1}), custom("c@example.com")]
        )

        assert result.job_ids[1] is None
        assert result.errors == [{"index": 1, "error": "template must be a string"}]
        assert [e.to for e in email_queue.queued_emails()] == ["a@example.com", "c@example.com"]

    async def test_all_invalid(self, service, email_queue):
        with pytest.raises(BadRequest):
            await service.send_bulk_emails([{"to": "a@example.com"}, "not an email"])

        assert email_queue.jobs == {}

    @pytest.mark.parametrize("requests", [[], None, {"to": "a@example.com"}])
    async def test_requires_a_list(self, service, requests):
        with pytest.raises(BadRequest):
            await service.send_bulk_emails(requests)


class TestQueueManagement:
    async def test_clean_defaults(self, service, email_queue):
        job_id = await service.send_welcome("pat@example.com", "Pat")
        email_queue.finish(job_id, age=timedelta(days=2))

        assert await service.clean_queue() == [job_id]

    async def test_clean_rejects_unknown_state(self, service):
        with pytest.raises(BadRequest):
            await service.clean_queue(state="active")
