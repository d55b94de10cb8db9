"""Tests for MessageSender: guards, mock mode, truncation and typed results."""

import dataclasses
import urllib.error
from decimal import Decimal
from unittest.mock import patch

import pytest

from bizbot.whatsapp.models import (
    Button,
    ButtonMessage,
    Header,
    ListItem,
    ListSection,
    SendStatus,
    TemplateMessage,
    TextMessage,
)
from bizbot.whatsapp.sender import MessageSender

from helpers import CUSTOMER_NUMBER, SENDER_NUMBER, LogRecorder, make_transport, sent_envelopes


class TestSendText:
    def test_sent_result_carries_provider_id(self, sender, transport):
        result = sender.send_text(CUSTOMER_NUMBER, "hello")

        assert result.status is SendStatus.SENT
        assert result.ok is True
        assert result.provider_message_id == "SM123"
        transport.assert_called_once()

    def test_request_shape(self, sender, transport):
        sender.send_text(CUSTOMER_NUMBER, "שלום")

        url, data, headers, timeout = transport.call_args.args
        assert url == "https://provider.test/messages"
        assert headers["Content-Type"] == "application/json"
        assert headers["Authorization"].startswith("Basic ")
        assert timeout == 5.0
        assert sent_envelopes(transport) == [
            {"from": "whatsapp:+15550009999", "to": "whatsapp:+972521234567", "body": "שלום"}
        ]

    def test_default_transport_is_module_request(self, settings):
        sender = MessageSender(settings)
        with patch("bizbot.whatsapp.sender._do_request", return_value={"sid": "SM9"}) as mock_req:
            result = sender.send_text(CUSTOMER_NUMBER, "hi")

        assert result.provider_message_id == "SM9"
        mock_req.assert_called_once()

    def test_transport_failure_returns_failed(self, settings):
        transport = make_transport(side_effect=urllib.error.URLError("connection refused"))
        result = MessageSender(settings, transport=transport).send_text(CUSTOMER_NUMBER, "hi")

        assert result.status is SendStatus.FAILED
        assert result.ok is False
        assert "URLError" in result.reason


class TestGuards:
    @pytest.mark.parametrize(
        "to", [SENDER_NUMBER, "whatsapp:+15550009999", "1 555 000 9999"]
    )
    def test_recipient_equals_sender_is_mocked(self, sender, transport, to):
        result = sender.send_text(to, "loop?")

        assert result.status is SendStatus.MOCK
        assert result.ok is False
        transport.assert_not_called()

    def test_guard_applies_to_every_kind(self, sender, transport):
        results = [
            sender.send_buttons(SENDER_NUMBER, "b", [Button(id="1", title="One")]),
            sender.send_list(SENDER_NUMBER, "b", "Open", [ListSection("s", (ListItem("1", "One"),))]),
            sender.send_template(SENDER_NUMBER, "t"),
        ]
        assert all(r.status is SendStatus.MOCK for r in results)
        transport.assert_not_called()

    def test_missing_sender_number_fails(self, settings, transport):
        settings = dataclasses.replace(settings, whatsapp_phone_number=None)
        result = MessageSender(settings, transport=transport).send_text(CUSTOMER_NUMBER, "hi")

        assert result.status is SendStatus.FAILED
        assert result.reason == "sender number not configured"
        transport.assert_not_called()

    def test_empty_recipient_fails(self, sender, transport):
        result = sender.send_text("whatsapp:", "hi")

        assert result.status is SendStatus.FAILED
        transport.assert_not_called()

    def test_unconfigured_provider_is_mock_mode(self, settings, transport):
        settings = dataclasses.replace(settings, twilio_account_sid=None, twilio_auth_token=None)
        recorder = LogRecorder()

        with patch("bizbot.whatsapp.sender.logger", recorder):
            result = MessageSender(settings, transport=transport).send_text(CUSTOMER_NUMBER, "hi")

        assert result.status is SendStatus.MOCK
        assert result.reason == "provider credentials not configured"
        transport.assert_not_called()
        assert any("[MOCK]" in str(args) for _, args, _ in recorder.calls)


class TestInteractive:
    def test_buttons_truncated_to_three(self, sender, transport):
        buttons = [Button(id=f"b{i}", title=f"Option {i}") for i in range(5)]
        recorder = LogRecorder()

        with patch("bizbot.whatsapp.sender.logger", recorder):
            result = sender.send_buttons(CUSTOMER_NUMBER, "Pick", buttons)

        assert result.ok
        sent = sent_envelopes(transport)[0]["interactive"]["action"]["buttons"]
        assert [b["reply"]["id"] for b in sent] == ["b0", "b1", "b2"]
        assert "warning" in recorder.levels()
        assert any("truncated" in str(args) for _, args, _ in recorder.calls)

    def test_three_buttons_not_truncated(self, sender, transport):
        recorder = LogRecorder()
        with patch("bizbot.whatsapp.sender.logger", recorder):
            sender.send_buttons(CUSTOMER_NUMBER, "Pick", [Button(id=str(i), title=str(i)) for i in range(3)])

        assert "warning" not in recorder.levels()
        assert len(sent_envelopes(transport)[0]["interactive"]["action"]["buttons"]) == 3

    def test_media_header(self, sender, transport):
        sender.send_buttons(
            CUSTOMER_NUMBER,
            "Our menu",
            [Button(id="order", title="Order")],
            header=Header(kind="image", link="https://cdn.test/menu.png"),
        )

        header = sent_envelopes(transport)[0]["interactive"]["header"]
        assert header == {"type": "image", "image": {"link": "https://cdn.test/menu.png"}}

    def test_list_message(self, sender, transport):
        sections = [
            ListSection(
                title="Coffee",
                items=(ListItem(id="esp", title="Espresso", description="Double"),),
            )
        ]
        result = sender.send_list(CUSTOMER_NUMBER, "Menu", "View", sections, footer="Enjoy")

        assert result.ok
        interactive = sent_envelopes(transport)[0]["interactive"]
        assert interactive["type"] == "list"
        assert interactive["action"]["sections"][0]["rows"][0]["id"] == "esp"
        assert interactive["footer"] == {"text": "Enjoy"}

    def test_template_default_language(self, sender, transport):
        sender.send_template(CUSTOMER_NUMBER, "order_ready")

        template = sent_envelopes(transport)[0]["template"]
        assert template["language"] == {"code": "en_US"}

    def test_template_configured_default_language(self, settings, transport):
        settings = dataclasses.replace(settings, default_template_language="he")
        MessageSender(settings, transport=transport).send_template(CUSTOMER_NUMBER, "order_ready")

        assert sent_envelopes(transport)[0]["template"]["language"] == {"code": "he"}

    def test_unserializable_components_fail_without_sending(self, sender, transport):
        result = sender.send_template(
            CUSTOMER_NUMBER, "promo", components=[{"amount": Decimal("9.90")}]
        )

        assert result.status is SendStatus.FAILED
        assert result.reason == "unserializable envelope"
        transport.assert_not_called()


class TestSendDispatch:
    def test_send_routes_by_message_type(self, sender, transport):
        sender.send(CUSTOMER_NUMBER, TextMessage("a"))
        sender.send(CUSTOMER_NUMBER, ButtonMessage(body="b", buttons=(Button("1", "One"),)))
        sender.send(CUSTOMER_NUMBER, TemplateMessage(name="t", language="he"))

        envelopes = sent_envelopes(transport)
        assert envelopes[0]["body"] == "a"
        assert envelopes[1]["interactive"]["type"] == "button"
        assert envelopes[2]["template"]["name"] == "t"

    def test_unsupported_message_type(self, sender):
        with pytest.raises(TypeError):
            sender.send(CUSTOMER_NUMBER, "plain string")


class TestNoPiiLeakage:
    MESSAGE_TEXT = "dummy_text_secret"

    def test_send_logs_no_pii(self, sender):
        recorder = LogRecorder()
        with patch("bizbot.whatsapp.sender.logger", recorder):
            sender.send_text(CUSTOMER_NUMBER, self.MESSAGE_TEXT)

        all_logged = recorder.get_all_logged_content()
        assert "972521234567" not in all_logged
        assert self.MESSAGE_TEXT not in all_logged
        assert recorder.has_extra_field("to_hash")
        assert recorder.has_extra_field("text_len")

    def test_mock_mode_logs_no_pii(self, settings):
        settings = dataclasses.replace(settings, twilio_auth_token=None)
        recorder = LogRecorder()
        with patch("bizbot.whatsapp.sender.logger", recorder):
            MessageSender(settings).send_text(CUSTOMER_NUMBER, self.MESSAGE_TEXT)

        all_logged = recorder.get_all_logged_content()
        assert "972521234567" not in all_logged
        assert self.MESSAGE_TEXT not in all_logged

    def test_failure_logs_no_pii(self, settings):
        transport = make_transport(side_effect=OSError("boom"))
        recorder = LogRecorder()
        with patch("bizbot.whatsapp.sender.logger", recorder):
            MessageSender(settings, transport=transport).send_text(CUSTOMER_NUMBER, self.MESSAGE_TEXT)

        all_logged = recorder.get_all_logged_content()
        assert "972521234567" not in all_logged
        assert self.MESSAGE_TEXT not in all_logged
        assert "error" in recorder.levels()
