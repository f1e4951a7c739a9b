"""Ordered, fault-isolated text transformation pipeline.

Step order is fixed:
    Sanitize -> CodeBlock -> Attachments -> URL -> UserMention -> Emoji -> ThreadLink

Sanitising first means later regexes see normalised text; code blocks are
normalised before anything that must not rewrite code; attachments run before
URL conversion so preview URLs are still bare; URLs are converted before
mentions so nothing inside a URL becomes a wikilink.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from .attachments import AttachmentNormalizer
from .converters import (
    convert_slack_urls,
    format_thread_links,
    format_user_mentions,
    identity,
    normalize_code_blocks,
    preserve_code_fences,
    replace_emoji,
    sanitize_text,
    simplify_urls,
    simplify_user_mentions,
)
from .settings import FormatSettings, ParsedMaps

logger = logging.getLogger(__name__)

Transform = Callable[[str, ParsedMaps], str]
Fallback = Callable[[str], str]


class StepOutcome(str, Enum):
    SKIPPED = "skipped"
    APPLIED = "applied"
    FALLBACK = "fallback"
    FAILED = "failed"


@dataclass
class StepResult:
    text: str
    outcome: StepOutcome
    error: Optional[Exception] = None


@dataclass(frozen=True)
class ProcessingStep:
    """One named rewrite with its enablement predicate and fallback."""

    name: str
    enabled: Callable[[FormatSettings], bool]
    transform: Transform
    fallback: Fallback = identity


@dataclass
class PipelineReport:
    text: str
    outcomes: list[tuple[str, StepOutcome]] = field(default_factory=list)


def with_fallback(
    name: str, transform: Transform, fallback: Fallback
) -> Callable[[str, ParsedMaps], StepResult]:
    """Wrap a transform so failures fall back, and double failures are no-ops."""

    def run(text: str, maps: ParsedMaps) -> StepResult:
        try:
            return StepResult(transform(text, maps), StepOutcome.APPLIED)
        except Exception as e:
            logger.warning("Step '%s' failed, using fallback: %s", name, e)
            try:
                return StepResult(fallback(text), StepOutcome.FALLBACK, e)
            except Exception as fallback_error:
                logger.error(
                    "Fallback for step '%s' failed, leaving text unchanged: %s",
                    name,
                    fallback_error,
                )
                return StepResult(text, StepOutcome.FAILED, fallback_error)

    return run


def _normalize_attachments(text: str, maps: ParsedMaps) -> str:
    return AttachmentNormalizer().process(text).content


def build_default_steps() -> tuple[ProcessingStep, ...]:
    return (
        ProcessingStep(
            "Sanitize",
            lambda s: s.enable_text_sanitization,
            lambda text, maps: sanitize_text(text),
        ),
        ProcessingStep(
            "CodeBlock",
            lambda s: s.detect_code_blocks,
            lambda text, maps: normalize_code_blocks(text),
            preserve_code_fences,
        ),
        ProcessingStep("Attachments", lambda s: True, _normalize_attachments),
        ProcessingStep(
            "URL",
            lambda s: s.convert_slack_links,
            lambda text, maps: convert_slack_urls(text),
            simplify_urls,
        ),
        ProcessingStep(
            "UserMention",
            lambda s: s.convert_user_mentions,
            lambda text, maps: format_user_mentions(text, maps.user_map),
            simplify_user_mentions,
        ),
        ProcessingStep(
            "Emoji",
            lambda s: s.replace_emoji,
            lambda text, maps: replace_emoji(text, maps.emoji_map),
        ),
        ProcessingStep(
            "ThreadLink",
            lambda s: s.highlight_threads,
            lambda text, maps: format_thread_links(text),
        ),
    )


class ContentPipeline:
    """Apply the enabled steps in order to one message body.

    The pipeline keeps no per-call state; only the settings snapshot changes
    through update_settings.
    """

    def __init__(
        self,
        settings: Optional[FormatSettings] = None,
        steps: Optional[tuple[ProcessingStep, ...]] = None,
    ):
        self.settings = settings or FormatSettings()
        self.steps = steps if steps is not None else build_default_steps()

    def update_settings(self, settings: FormatSettings) -> None:
        self.settings = settings

    def step_states(self) -> dict[str, bool]:
        return {step.name: bool(step.enabled(self.settings)) for step in self.steps}

    def run(self, text: str, maps: Optional[ParsedMaps] = None) -> PipelineReport:
        """Process text and record the outcome of every step."""
        maps = maps or ParsedMaps()
        report = PipelineReport(text=text)
        for step in self.steps:
            if not step.enabled(self.settings):
                report.outcomes.append((step.name, StepOutcome.SKIPPED))
                continue
            result = with_fallback(step.name, step.transform, step.fallback)(
                report.text, maps
            )
            report.text = result.text
            report.outcomes.append((step.name, result.outcome))
        return report

    def process(
        self, text: str, maps: Optional[ParsedMaps] = None, debug: bool = False
    ) -> str:
        report = self.run(text, maps)
        if debug or self.settings.debug:
            logger.debug(
                "Pipeline steps: %s",
                ", ".join(f"{name}={outcome.value}" for name, outcome in report.outcomes),
            )
        return report.text
