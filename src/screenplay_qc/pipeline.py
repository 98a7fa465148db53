"""
Screenplay post-processing pipeline.

Runs one generated unit ("sequence") through the hard-reject gate and, when
accepted, through every correction pass in a fixed order:

1. variance analysis, variance correction
2. tic, object and exit-cliché limiters
3. prop cooldown
4. mundanity check (report only)
5. extreme-variance split
6. semantic-glue strip, artifact strip, ellipsis-per-line limit
7. somatic injection, summary-ending strip
8. verbal-friction and sensory injection
9. lowercase fix, ellipsis cap, stutter cap, generic-reply replacement
10. final reporting scans

Later passes see the output of earlier ones, so the order is part of the
contract. The caller's PersistentContext is never modified: an accepted unit
returns a new context, a rejected unit returns the one passed in.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from . import cleanup
from .cooldown import enforce_prop_cooldown, last_prop_positions
from .detectors import detect_mundanity_ratio
from .hard_reject import HardRejectResult, build_soft_surgical_prompt, check_hard_reject_patterns, run_detectors
from .injectors import inject_sensory_details, inject_somatic_markers, inject_verbal_friction, sensory_density
from .limiters import enforce_exit_cliche_limits, enforce_object_tic_limits, enforce_tic_limits
from .models import CharacterProfile, PersistentContext, SequenceSummary
from .settings import PipelineSettings
from .utils.errors import require_text
from .utils.word_count import count_words
from .variance import calculate_sentence_variance, enforce_extreme_variance, enforce_sentence_variance
from .voice_analyzer import check_professor_humanization, check_verbal_messiness, detect_noir_template

logger = logging.getLogger(__name__)


@dataclass
class ProcessingReport:
    """Diagnostics for one unit. Never used for control flow."""
    sequence_number: int
    hard_reject: bool = False
    reasons: List[str] = field(default_factory=list)
    detectors: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    variance_before: Dict[str, Any] = field(default_factory=dict)
    variance_after: Dict[str, Any] = field(default_factory=dict)
    modifications: Dict[str, int] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    cooldown_violations: List[Dict[str, Any]] = field(default_factory=list)
    mundanity: Dict[str, Any] = field(default_factory=dict)
    verbal_messiness: Dict[str, Any] = field(default_factory=dict)
    noir_template: Dict[str, Any] = field(default_factory=dict)
    professor_check: Dict[str, Any] = field(default_factory=dict)
    final_scans: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    sensory_density: float = 0.0
    word_count: int = 0

    @property
    def total_modifications(self) -> int:
        return sum(self.modifications.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sequence_number": self.sequence_number,
            "hard_reject": self.hard_reject,
            "reasons": list(self.reasons),
            "detectors": dict(self.detectors),
            "variance_before": dict(self.variance_before),
            "variance_after": dict(self.variance_after),
            "modifications": dict(self.modifications),
            "total_modifications": self.total_modifications,
            "warnings": list(self.warnings),
            "cooldown_violations": list(self.cooldown_violations),
            "mundanity": dict(self.mundanity),
            "verbal_messiness": dict(self.verbal_messiness),
            "noir_template": dict(self.noir_template),
            "professor_check": dict(self.professor_check),
            "final_scans": dict(self.final_scans),
            "sensory_density": self.sensory_density,
            "word_count": self.word_count,
        }


@dataclass(frozen=True)
class PostProcessingResult:
    """
    Attributes:
        content: Cleaned text, or the untouched input when hard-rejected
        updated_context: Context for the next unit (the input one when rejected)
        hard_reject: Whether the unit must be regenerated
        surgical_prompt: Rejection instructions, or soft corrections when accepted
        report: Diagnostics
    """
    content: str
    updated_context: PersistentContext
    hard_reject: bool
    surgical_prompt: Optional[str]
    report: ProcessingReport


class ScreenplayPostProcessor:
    """
    Post-processor for generated screenplay sequences.

    One instance can serve any number of documents; it holds only settings.
    """

    def __init__(self, settings: Optional[PipelineSettings] = None):
        self.settings = settings or PipelineSettings()

    def process(
        self,
        text: str,
        context: Optional[PersistentContext] = None,
        sequence_number: int = 1,
        previous_summaries: Optional[Sequence[SequenceSummary]] = None,
        characters: Optional[Sequence[CharacterProfile]] = None,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
    ) -> PostProcessingResult:
        """
        Process one unit.

        Args:
            text: Generated unit text
            context: Context returned for the previous unit (empty if None)
            sequence_number: 1-based position of the unit in the document
            previous_summaries: Defaults to ``context.sequence_summaries``
            characters: Character profiles for the voice checks
            rng: Random source for the injectors
            seed: Seed for a new random source when ``rng`` is not given

        Returns:
            PostProcessingResult

        Raises:
            ValidationError: If ``text`` is not a string or ``sequence_number`` < 1
        """
        require_text(text)
        context = context if context is not None else PersistentContext.create()
        if previous_summaries is None:
            previous_summaries = context.sequence_summaries
        rng = rng if rng is not None else random.Random(seed)
        settings = self.settings

        report = ProcessingReport(sequence_number=sequence_number)

        gate = check_hard_reject_patterns(
            text, sequence_number, previous_summaries, characters, settings
        )
        report.detectors = {name: result.to_dict() for name, result in gate.detector_results.items()}
        if gate.must_regenerate:
            return self._rejected(text, context, gate, report)

        content = text
        report.variance_before = calculate_sentence_variance(content, settings.metric_threshold).to_dict()

        def record(name: str, changes: int):
            report.modifications[name] = changes
            if changes:
                logger.debug(f"Sequence {sequence_number} {name}: {changes} changes")

        if report.variance_before["is_metric"]:
            content, combined = enforce_sentence_variance(content)
        else:
            combined = 0
        record("sentence_combinations", combined)

        tics = enforce_tic_limits(content, context.tic_credits)
        content = tics.content
        record("tic_replacements", tics.replaced)

        objects = enforce_object_tic_limits(content, context.object_credits)
        content = objects.content
        record("object_replacements", objects.replaced)

        exits = enforce_exit_cliche_limits(content, context.exit_credits)
        content = exits.content
        record("exit_replacements", exits.replaced)
        report.warnings.extend(tics.warnings + objects.warnings + exits.warnings)

        cooldown = enforce_prop_cooldown(
            content,
            context.prop_last_position,
            context.total_word_count,
            scale=settings.cooldown_scale,
        )
        content = cooldown.content
        record("cooldown_removals", len(cooldown.violations))
        report.cooldown_violations = [
            {"prop": v.prop, "distance": v.distance, "required": v.required}
            for v in cooldown.violations
        ]

        mundanity = detect_mundanity_ratio(content)
        report.mundanity = mundanity.to_dict()

        content, splits = enforce_extreme_variance(
            content,
            rng,
            chance=settings.extreme_variance_chance,
            target=settings.extreme_variance_target,
        )
        record("extreme_variance_splits", splits)

        content, changes = cleanup.strip_semantic_glue(content)
        record("semantic_glue_removed", changes)
        content, changes = cleanup.strip_technical_artifacts(content)
        record("artifacts_removed", changes)
        content, changes = cleanup.limit_ellipses_per_line(content)
        record("ellipses_per_line", changes)

        content, changes = inject_somatic_markers(content, rng)
        record("somatic_markers", changes)
        content, changes = cleanup.strip_summary_endings(content)
        record("summary_endings_removed", changes)

        content, changes = inject_verbal_friction(
            content,
            rng,
            chance=settings.friction_chance,
            max_injections=settings.max_friction_per_unit,
        )
        record("verbal_friction", changes)
        content, changes = inject_sensory_details(
            content,
            rng,
            target_density=settings.sensory_target_density,
            max_injections=settings.max_sensory_injections,
        )
        record("sensory_details", changes)

        content, changes = cleanup.fix_lowercase_after_sentence_end(content)
        record("lowercase_fixes", changes)
        content, changes = cleanup.cap_ellipses(content, settings.max_ellipses)
        record("ellipses_capped", changes)
        content, changes = cleanup.cap_stutters(content, settings.max_stutters)
        record("stutters_capped", changes)
        content, changes = cleanup.replace_generic_responses(content, settings.generic_reply_keep)
        record("generic_responses_replaced", changes)

        self._final_scans(content, sequence_number, previous_summaries, characters, report)
        surgical_prompt = build_soft_surgical_prompt(
            mundanity, report.verbal_messiness, report.noir_template, report.professor_check
        )

        # Later passes insert and strip words, so offsets are re-read from the final text
        prop_positions = dict(context.prop_last_position)
        prop_positions.update(last_prop_positions(content, context.total_word_count))

        updated_context = context.model_copy(
            deep=True,
            update={
                "tic_credits": tics.updated_credits,
                "object_credits": objects.updated_credits,
                "exit_credits": exits.updated_credits,
                "prop_last_position": prop_positions,
                "total_word_count": context.total_word_count + report.word_count,
            },
        )

        logger.debug(
            f"Sequence {sequence_number} accepted with {report.total_modifications} modifications"
        )
        return PostProcessingResult(
            content=content,
            updated_context=updated_context,
            hard_reject=False,
            surgical_prompt=surgical_prompt,
            report=report,
        )

    def _rejected(
        self,
        text: str,
        context: PersistentContext,
        gate: HardRejectResult,
        report: ProcessingReport,
    ) -> PostProcessingResult:
        report.hard_reject = True
        report.reasons = list(gate.reasons)
        report.word_count = count_words(text)
        return PostProcessingResult(
            content=text,
            updated_context=context,
            hard_reject=True,
            surgical_prompt=gate.surgical_prompt,
            report=report,
        )

    def _final_scans(self, content, sequence_number, previous_summaries, characters, report):
        scans = run_detectors(content, sequence_number, previous_summaries, characters, self.settings)
        report.final_scans = {name: result.to_dict() for name, result in scans.items()}
        report.variance_after = calculate_sentence_variance(content, self.settings.metric_threshold).to_dict()
        report.verbal_messiness = check_verbal_messiness(content)
        report.noir_template = detect_noir_template(content)
        report.professor_check = check_professor_humanization(content, characters)
        report.sensory_density = round(sensory_density(content), 2)
        report.word_count = count_words(content)


def run_screenplay_post_processing(
    text: str,
    context: Optional[PersistentContext] = None,
    sequence_number: int = 1,
    previous_summaries: Optional[Sequence[SequenceSummary]] = None,
    characters: Optional[Sequence[CharacterProfile]] = None,
    rng: Optional[random.Random] = None,
    seed: Optional[int] = None,
    settings: Optional[PipelineSettings] = None,
) -> PostProcessingResult:
    """
    Process one unit with a fresh ScreenplayPostProcessor.

    See ScreenplayPostProcessor.process for the arguments.
    """
    return ScreenplayPostProcessor(settings).process(
        text,
        context=context,
        sequence_number=sequence_number,
        previous_summaries=previous_summaries,
        characters=characters,
        rng=rng,
        seed=seed,
    )
