"""Tests for the individual text rewrites."""

import pytest

from slack_paste_md.converters import (
    convert_slack_urls,
    format_reactions,
    format_thread_links,
    format_user_mentions,
    map_outside_code,
    merge_emoji_map,
    normalize_code_blocks,
    preserve_code_fences,
    replace_emoji,
    sanitize_text,
    sanitize_wikilink,
    simplify_urls,
    simplify_user_mentions,
)
from slack_paste_md.models import Reaction


class TestSanitize:
    def test_smart_punctuation(self):
        assert sanitize_text("“Hi” – it’s done…") == '"Hi" -- it\'s done...'

    def test_collapses_spaces_outside_indented_lines(self):
        text = "a   b\n    indented   code\n```  keep"
        assert sanitize_text(text) == "a b\n    indented   code\n```  keep"

    def test_line_endings_and_nfc(self):
        assert sanitize_text("café\r\nok") == "café\nok"


class TestCodeBlocks:
    def test_normalizes_fences(self):
        text = "```  python \nprint('x')\n```"
        assert normalize_code_blocks(text) == "```python\nprint('x')\n```"

    def test_closes_unterminated_block(self):
        assert normalize_code_blocks("```\ncode") == "```\ncode\n```"

    def test_fallback_reemits_fences(self):
        assert preserve_code_fences("  ```js  \nx") == "```js\nx"

    def test_one_line_fence_does_not_open_block(self):
        text = "```npm test```\nafter"
        assert normalize_code_blocks(text) == text
        assert map_outside_code(text, str.upper) == "```npm test```\nAFTER"

    def test_map_outside_code_skips_fenced_lines(self):
        text = "up\n```\nup\n```\nup"
        result = map_outside_code(text, str.upper)
        assert result == "UP\n```\nup\n```\nUP"


class TestUrls:
    def test_labelled_and_bare_urls(self):
        text = "See <https://a.io/x|the doc> or <https://b.io>"
        assert convert_slack_urls(text) == "See [the doc](https://a.io/x) or https://b.io"

    def test_html_escaped_brackets(self):
        text = "&lt;https://a.io|A&gt;"
        assert convert_slack_urls(text) == "[A](https://a.io)"

    def test_code_is_untouched(self):
        text = "```\n<https://a.io|A>\n```"
        assert convert_slack_urls(text) == text

    def test_fallback_converts_everywhere(self):
        assert simplify_urls("```\n<https://a.io|A>\n```") == "```\n[A](https://a.io)\n```"

    def test_thread_links(self):
        text = "View thread: https://team.slack.com/archives/C1/p2"
        assert (
            format_thread_links(text)
            == "[View thread](https://team.slack.com/archives/C1/p2)"
        )


class TestMentions:
    def test_known_user_id(self):
        assert format_user_mentions("hi <@U123ABC>", {"U123ABC": "Alice Smith"}) == (
            "hi [[Alice Smith]]"
        )

    def test_unknown_user_id(self):
        assert format_user_mentions("<@U999XYZ12>", {}) == "[[User-U999XY]]"

    def test_named_and_linked_mentions(self):
        text = "<@bob> and [@carol](https://team.slack.com/team/U2)"
        assert format_user_mentions(text, {}) == "[[bob]] and [[carol]]"

    def test_broadcast_mentions(self):
        assert format_user_mentions("<!here> heads up", {}) == "**@here** heads up"

    def test_bare_mentions_skip_emails_and_urls(self):
        text = "ping @dave, mail dave@example.com, see https://x.io/@dave"
        assert format_user_mentions(text, {}) == (
            "ping [[dave]], mail dave@example.com, see https://x.io/@dave"
        )

    def test_wikilink_sanitized(self):
        assert sanitize_wikilink("  Ann [ops] |  #1 ") == "Ann ops 1"
        assert len(sanitize_wikilink("x" * 150)) == 100

    def test_fallback(self):
        assert simplify_user_mentions("<@U1> and @eve") == "[[user]] and [[eve]]"


class TestEmoji:
    def test_default_codes(self):
        assert replace_emoji("great :fire: :+1:") == "great 🔥 👍"

    def test_unknown_code_left_alone(self):
        assert replace_emoji("at 10:30:45 :nope:") == "at 10:30:45 :nope:"

    def test_custom_map_and_images(self):
        emoji_map = {":partyparrot:": "🦜"}
        text = "![:partyparrot:](https://emoji.slack-edge.com/p.gif) ![:blob:](https://e/b.gif)"
        assert replace_emoji(text, emoji_map) == "🦜 :blob:"

    def test_merge_strips_colons(self):
        assert merge_emoji_map({":wave:": "🙋"})["wave"] == "🙋"

    def test_reactions(self):
        reactions = [Reaction(name="thumbsup", count=3), Reaction(name="heart", count=1)]
        assert format_reactions(reactions) == "👍 3 ❤️ 1"

    @pytest.mark.parametrize("name", ["custom_thing", ":custom_thing:"])
    def test_unknown_reaction_keeps_code(self, name):
        assert format_reactions([Reaction(name=name, count=2)]) == ":custom_thing: 2"
