"""Tests for attachment and link-preview normalisation."""

import pytest

from slack_paste_md.attachments import (
    AttachmentNormalizer,
    format_link_preview,
    is_attachment_metadata,
    upload_emoji,
)

AVATAR = "![](https://ca.slack-edge.com/T0123-U0456-abc-72)"


@pytest.fixture
def normalizer():
    return AttachmentNormalizer()


class TestFileUploads:
    """'<user> uploaded a file: <name>' lines."""

    def test_pdf_upload(self, normalizer):
        result = normalizer.process("Alice uploaded a file: report.pdf")
        assert result.content == "📄 Alice uploaded: **report.pdf**"
        assert result.modified is True

    @pytest.mark.parametrize(
        "filename,emoji",
        [
            ("report.pdf", "📄"),
            ("image.png", "🖼️"),
            ("script.py", "💻"),
            ("archive.zip", "📎"),
            ("README", "📎"),
        ],
    )
    def test_upload_emoji(self, filename, emoji):
        assert upload_emoji(filename) == emoji


class TestImages:
    def test_image_from_device(self, normalizer):
        result = normalizer.process("Image from iOS")
        assert result.content == "🖼️ _Image from iOS_"

    def test_image_from_device_any_case(self, normalizer):
        result = normalizer.process("image from ANDROID")
        assert result.content == "🖼️ _image from ANDROID_"

    def test_empty_alt_text_becomes_image(self, normalizer):
        result = normalizer.process("![](https://example.com/cat.png)")
        assert result.content == "![Image](https://example.com/cat.png)"

    def test_invalid_image_url_left_alone(self, normalizer, caplog):
        result = normalizer.process("![diagram](not-a-url)")
        assert result.content == "![diagram](not-a-url)"
        assert result.modified is False
        assert "invalid URL" in caplog.text


class TestLinkPreviews:
    """Preview cards collapse into a single link line."""

    def test_known_service_card(self, normalizer):
        text = "\n".join(
            [
                "Google Docs",
                "https://docs.google.com/document/d/abc",
                "Quarterly planning notes for the team",
                "",
                "what do you think?",
            ]
        )
        result = normalizer.process(text)
        assert result.content == (
            "🔗 [Google Docs](https://docs.google.com/document/d/abc)"
            " — _Quarterly planning notes for the team_\n"
            "\n"
            "what do you think?"
        )

    def test_github_repository_card(self, normalizer):
        text = "\n".join(
            [
                "octo-org/widget",
                "A widget library for dashboards",
                "Language",
                "TypeScript",
                "Last updated",
                "2 days ago",
                "Added by [GitHub]",
                "nice find",
            ]
        )
        result = normalizer.process(text)
        assert result.content == (
            "🔗 **octo-org/widget** — _A widget library for dashboards_\nnice find"
        )

    def test_doubled_title_card(self, normalizer):
        text = "GuidewireGuidewire\nhttps://www.guidewire.com\nInsurance software platform"
        result = normalizer.process(text)
        assert result.content == (
            "🔗 [Guidewire](https://www.guidewire.com) — _Insurance software platform_"
        )

    def test_preview_ends_before_next_message_header(self, normalizer):
        text = "\n".join(
            [
                "Notion",
                "https://notion.so/page",
                "Bob Jones  [10:42 AM](https://team.slack.com/archives/C1/p1)",
            ]
        )
        result = normalizer.process(text)
        assert result.content.split("\n") == [
            "🔗 [Notion](https://notion.so/page)",
            "Bob Jones  [10:42 AM](https://team.slack.com/archives/C1/p1)",
        ]

    def test_long_description_truncated(self):
        line = format_link_preview("Title", "https://x.io", "d" * 150)
        assert line == f"🔗 [Title](https://x.io) — _{'d' * 100}..._"

    def test_degraded_forms(self):
        assert format_link_preview(None, "https://x.io", None) == "🔗 <https://x.io>"
        assert format_link_preview("Title", None, None) == "🔗 **Title**"
        assert format_link_preview(None, None, None) is None


class TestNoticesAndAvatars:
    def test_added_by_service(self, normalizer):
        result = normalizer.process("📎 Added by [Google Drive](https://slack.com/apps/A1)")
        assert result.content == "📎 _Added by Google Drive_"

    def test_file_count_passes_through(self, normalizer):
        result = normalizer.process("📎 3 files")
        assert result.content == "📎 3 files"
        assert result.modified is False

    def test_avatar_before_message_header_kept_as_comment(self, normalizer):
        text = f"{AVATAR}\nBob Jones  [10:42 AM](https://team.slack.com/archives/C1/p1)"
        result = normalizer.process(text)
        assert result.content.split("\n")[0] == f"<!-- Avatar: {AVATAR} -->"

    def test_avatar_before_content_kept_as_comment(self, normalizer):
        text = f"{AVATAR}\nthis is a reasonably long message body"
        result = normalizer.process(text)
        assert result.content.startswith("<!-- Avatar:")

    def test_stray_avatar_dropped(self, normalizer):
        result = normalizer.process(f"ok\n{AVATAR}\nDownload")
        assert result.content == "ok\nDownload"


class TestAttachmentMetadata:
    @pytest.mark.parametrize(
        "line",
        [
            AVATAR,
            "[",
            "](https://example.com/x)",
            "3 files",
            "Download",
            "Open in browser",
            "Preview not available",
            "File type: PDF",
            "File size: 2 MB",
            "Language",
            "TypeScript",
            "Last updated",
            "5 minutes ago",
        ],
    )
    def test_metadata_lines(self, line):
        assert is_attachment_metadata(line)

    def test_content_is_not_metadata(self):
        assert not is_attachment_metadata("Let's sync tomorrow")


class TestIdempotence:
    """Normalising normalised text changes nothing."""

    @pytest.mark.parametrize(
        "text",
        [
            "Alice uploaded a file: report.pdf",
            "GuidewireGuidewire\nhttps://www.guidewire.com\nInsurance software platform",
            f"{AVATAR}\nthis is a reasonably long message body",
            "Image from Android\n📎 Added by [GitHub](https://slack.com/apps/A2)",
        ],
    )
    def test_second_pass_is_unmodified(self, normalizer, text):
        first = normalizer.process(text)
        second = normalizer.process(first.content)
        assert second.content == first.content
        assert second.modified is False

    def test_internal_failure_returns_original(self, normalizer, monkeypatch):
        def explode(lines):
            raise RuntimeError("boom")

        monkeypatch.setattr(
            normalizer,
            "rewrites",
            (("file uploads", explode),) + normalizer.rewrites[1:],
        )
        result = normalizer.process("Alice uploaded a file: notes.txt\nImage from iOS")
        assert result.content == "Alice uploaded a file: notes.txt\n🖼️ _Image from iOS_"
