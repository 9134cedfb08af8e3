"""End-to-end tests for fuse_channels."""

from meetscribe.fusion import FusionOptions, Speaker, fuse_channels
from meetscribe.fusion.models import flatten
from meetscribe.fusion.normalizer import split_words, tokenize
from meetscribe.transcript.renderer import DEGRADED_NOTE, render_transcript, render_turns

from conftest import segs


def turns(result):
    return render_turns(result)


class TestDegraded:
    def test_dead_speaker_channel(self):
        result = fuse_channels(segs((0, 2, "hello world")), [])
        assert result.degraded
        assert result.runs == []
        assert result.primary_text == "hello world"
        assert result.duration == 2

    def test_degraded_document_has_no_labels(self):
        result = fuse_channels(segs((0, 3, "hello"), (3, 5, "world")), [])
        md = render_transcript(result, "2026-02-13T19-25-11")
        assert md.endswith(f"{DEGRADED_NOTE}\n\nhello world\n")
        assert "**You:**" not in md and "**Them:**" not in md

    def test_both_channels_empty(self):
        result = fuse_channels([], [])
        assert result.degraded
        assert result.primary_text == ""
        assert result.duration == 0

    def test_speaker_text_not_inspected(self):
        result = fuse_channels(segs((0, 2, "hello world")), segs((0, 1, "")))
        assert not result.degraded


class TestLabeling:
    def test_bleed_becomes_them(self):
        primary = segs((0, 1, "Yes."), (1, 4, "I agree with that plan."), (4, 5, "Let's go."))
        reference = segs((1, 4, "I agree with that plan."))
        result = fuse_channels(primary, reference)
        assert turns(result) == [
            ("You", "Yes."),
            ("Them", "I agree with that plan."),
            ("You", "Let's go."),
        ]

    def test_empty_primary_with_live_reference(self):
        result = fuse_channels([], segs((0, 3, "hello from the other side")))
        assert not result.degraded
        assert result.runs == []

    def test_misheard_word_absorbed_into_them(self):
        primary = segs(
            (0, 6, "We need to finish the report by Friday and will send it over to the client next week.")
        )
        reference = segs(
            (0, 6, "We need to finish the report by Friday and we'll send it over to the client next week.")
        )
        result = fuse_channels(primary, reference)
        assert [r.speaker for r in result.runs] == [Speaker.REFERENCE]
        assert "and will send" in result.runs[0].text

    def test_fillers_kept_in_rendered_text(self):
        primary = segs((0, 3, "Um, I agree with that plan, uh, totally."))
        reference = segs((0, 3, "I agree with that plan"))
        result = fuse_channels(primary, reference)
        assert turns(result) == [("Them", "Um, I agree with that plan, uh,"), ("You", "totally.")]

    def test_runs_partition_filtered_tokens_and_alternate(self):
        primary = segs(
            (0, 3, "Okay so where are we on the launch?"),
            (3, 8, "We are on track and the landing page ships next Tuesday."),
            (8, 10, "Great, thanks."),
            (10, 15, "One more thing, the pricing page still needs legal review."),
        )
        reference = segs(
            (3, 8, "We are on track and the landing page ships next Tuesday."),
            (10, 15, "One more thing, the pricing page still needs legal review."),
        )
        options = FusionOptions(min_gap_words=1)
        result = fuse_channels(primary, reference, options)
        assert flatten(result.runs) == tokenize(split_words(primary))
        assert all(a.speaker != b.speaker for a, b in zip(result.runs, result.runs[1:]))
        assert [s for s, _ in turns(result)] == ["You", "Them", "You", "Them"]


class TestHallucination:
    def test_loop_removed_before_labeling(self):
        primary = segs(
            (0, 2, "Let's get started."),
            (2, 30, "Thank you. Thank you. Thank you. Thank you."),
        )
        options = FusionOptions(hallucination_ngram=2)
        result = fuse_channels(primary, [], options)
        assert result.removed_words == 8
        assert result.primary_text == "Let's get started."
        assert result.duration == 30

    def test_keep_one(self):
        primary = segs((0, 2, "Thank you. Thank you. Thank you."))
        options = FusionOptions(hallucination_ngram=2, hallucination_keep_one=True)
        assert fuse_channels(primary, [], options).primary_text == "Thank you."


def test_deterministic():
    primary = segs((0, 1, "Yes."), (1, 4, "I agree with that plan."), (4, 5, "Let's go."))
    reference = segs((1, 4, "I agree with that plan."))
    assert fuse_channels(primary, reference) == fuse_channels(primary, reference)


def test_split_word_never_leaves_an_empty_turn():
    text = "We will ship the whole release on friday-morning then more stuff here to finish the release notes now"
    primary = segs((0, 10, text))
    reference = segs(
        (0, 4, "we will ship the whole release on friday"),
        (4, 8, "and a lot of other unrelated words in between"),
        (8, 10, "then more stuff here to finish the release notes now"),
    )
    options = FusionOptions(gap_policy="anchored")
    result = fuse_channels(primary, reference, options)
    assert all(run.text for run in result.runs)
    assert turns(result) == [("Them", text)]
