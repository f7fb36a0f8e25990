"""Tests for email body cleanup."""

from finmail.services.text_cleaner import (
    clean_body,
    html_to_text,
    looks_like_html,
    remove_noise,
    trim_to_token_limit,
)


def test_html_to_text_drops_scripts_and_tags():
    html = "<html><head><title>x</title></head><body><p>Rs. 500 debited</p><script>track()</script></body></html>"
    text = html_to_text(html)
    assert "Rs. 500 debited" in text
    assert "track" not in text
    assert "<" not in text


def test_looks_like_html():
    assert looks_like_html("<div>hi</div>")
    assert not looks_like_html("Rs. 500 < 600")
    assert not looks_like_html("")


def test_remove_noise():
    text = "Rs. 500 debited\nThis is a system generated mail\nPlease do not reply\nNever share your OTP with anyone"
    assert remove_noise(text) == "Rs. 500 debited"


def test_trim_keeps_money_lines():
    filler = "\n".join(f"marketing line {i}" for i in range(200))
    text = filler + "\nAvl Bal: Rs. 10,250"
    trimmed = trim_to_token_limit(text, max_chars=200)
    assert len(trimmed) <= 200
    assert "Avl Bal: Rs. 10,250" in trimmed


def test_short_text_untouched():
    assert trim_to_token_limit("short", max_chars=100) == "short"


def test_clean_body_plain_text():
    assert clean_body("Rs. 20 credited\nUnsubscribe here") == "Rs. 20 credited"
    assert clean_body("") == ""
