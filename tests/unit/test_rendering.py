"""Unit tests for newsletter rendering."""

from datetime import datetime

from newsletter_queue.models import (
    Attachment,
    Campaign,
    SelectedContent,
    Subscriber,
)
from newsletter_queue.rendering import (
    NewsletterRenderer,
    format_date,
    html_to_text,
    tracking_pixel_url,
    unsubscribe_url,
)


def _campaign(**kwargs):
    return Campaign(
        id="C1",
        title="La lettre de mars",
        subject="March news",
        content="<p>Le marché revient</p>",
        **kwargs,
    )


def _subscriber(**kwargs):
    return Subscriber(id="s1", email="s1@example.com", unsubscribe_token="tok 1", **kwargs)


def test_format_date():
    assert format_date(datetime(2026, 3, 14, 18, 30)) == "14/03/2026"
    assert format_date("soon") == "soon"


def test_html_to_text_strips_tags_and_styles():
    html = "<html><head><style>p { color: red; }</style></head><body><p>Hi</p>\n\n\n<p>There</p></body></html>"

    assert html_to_text(html) == "Hi\n\nThere"


def test_tracking_and_unsubscribe_urls():
    assert (
        tracking_pixel_url("https://example.org", "C1", "s1")
        == "https://example.org/api/newsletter/track/open?c=C1&s=s1"
    )
    assert (
        unsubscribe_url("https://example.org", "tok 1")
        == "https://example.org/newsletter/unsubscribe?token=tok+1"
    )


def test_render_greeting_and_content():
    renderer = NewsletterRenderer("https://example.org/")

    html = renderer.render(_campaign(), _subscriber(first_name="Marie"), SelectedContent())

    assert "Bonjour Marie," in html
    assert "<p>Le marché revient</p>" in html
    assert "https://example.org/newsletter/unsubscribe?token=tok+1" in html
    assert "https://example.org/api/newsletter/track/open?c=C1&amp;s=s1" in html


def test_render_without_first_name():
    html = NewsletterRenderer("https://example.org").render(
        _campaign(), _subscriber(), SelectedContent()
    )

    assert "Bonjour," in html


def test_render_escapes_subscriber_data():
    html = NewsletterRenderer("https://example.org").render(
        _campaign(), _subscriber(first_name="<b>Eve</b>"), SelectedContent()
    )

    assert "<b>Eve</b>" not in html
    assert "&lt;b&gt;Eve&lt;/b&gt;" in html


def test_render_selected_content_sections():
    content = SelectedContent(
        events=[{"title": "Concert", "slug": "concert", "start_date": datetime(2026, 3, 14)}],
        places=[{"name": "Boulangerie", "slug": "boulangerie", "city": "Lyon"}],
        posts=[{"title": "Travaux", "slug": "travaux", "excerpt": "Rue fermée"}],
    )

    html = NewsletterRenderer("https://example.org").render(_campaign(), _subscriber(), content)

    assert 'href="https://example.org/events/concert"' in html
    assert "14/03/2026" in html
    assert 'href="https://example.org/places/boulangerie"' in html
    assert "Lyon" in html
    assert 'href="https://example.org/posts/travaux"' in html
    assert "Rue fermée" in html


def test_render_without_content_omits_sections():
    html = NewsletterRenderer("https://example.org").render(
        _campaign(), _subscriber(), SelectedContent()
    )

    assert "section-title\">" not in html


def test_attachments_are_listed_and_resolved_on_disk():
    attachment = Attachment(
        original_name="programme.pdf",
        file_path="/uploads/programme.pdf",
        file_size=2048,
        file_type="application/pdf",
    )
    renderer = NewsletterRenderer("https://example.org", public_root="/srv/public/")

    html = renderer.render(_campaign(attachments=[attachment]), _subscriber(), SelectedContent())
    (email_attachment,) = renderer.email_attachments([attachment])

    assert 'href="https://example.org/uploads/programme.pdf"' in html
    assert "programme.pdf" in html
    assert email_attachment.filename == "programme.pdf"
    assert email_attachment.path == "/srv/public/uploads/programme.pdf"
    assert email_attachment.content_type == "application/pdf"
