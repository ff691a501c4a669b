import webbrowser

from storefront.services.handoff import (
    BrowserLinkOpener,
    MockLinkOpener,
    hand_off,
    hand_off_payment,
)
from storefront.services.links import PaymentRail

WHATSAPP_LINK = "https://wa.me/7973782618?text=Hello"


def test_opened_web_link_needs_no_fallback():
    result = hand_off(MockLinkOpener(), WHATSAPP_LINK, "WhatsApp")

    assert result.opened
    assert not result.show_fallback


def test_blocked_link_offers_fallback():
    result = hand_off(MockLinkOpener(block_all=True), WHATSAPP_LINK, "WhatsApp")

    assert result.blocked
    assert result.fallback.href == WHATSAPP_LINK
    assert result.fallback.copy_text == WHATSAPP_LINK
    assert "WhatsApp" in result.fallback.message


def test_opened_app_scheme_still_offers_fallback():
    result = hand_off_payment(MockLinkOpener(), PaymentRail.UPI, "brobromomos@ptyes", 260)

    assert result.opened
    assert result.show_fallback
    assert result.fallback.href.startswith("upi://pay?")


def test_blocked_rail_is_not_chained():
    opener = MockLinkOpener(blocked_schemes=["tez"])

    result = hand_off_payment(opener, PaymentRail.GOOGLE_PAY, "brobromomos@ptyes", 260)

    assert result.blocked
    assert result.label == "Google Pay"
    assert len(opener.attempts) == 1
    assert opener.attempts[0].scheme == "tez"


def test_result_serializes():
    data = hand_off(MockLinkOpener(block_all=True), WHATSAPP_LINK, "WhatsApp").to_dict()

    assert data["opened"] is False
    assert data["fallback"]["href"] == WHATSAPP_LINK


def test_browser_opener_reports_refusal(monkeypatch):
    def refuse(uri, new=0):
        raise webbrowser.Error("no runnable browser")

    monkeypatch.setattr(webbrowser, "open", refuse)

    assert BrowserLinkOpener().attempt_open(WHATSAPP_LINK) is False


def test_browser_opener_passes_handle(monkeypatch):
    opened = []
    monkeypatch.setattr(webbrowser, "open", lambda uri, new=0: opened.append(uri) or True)

    assert BrowserLinkOpener().attempt_open(WHATSAPP_LINK) is True
    assert opened == [WHATSAPP_LINK]
