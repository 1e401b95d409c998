"""Tests for the post-validation duplicate guard."""

from journal_memory.decisions import (
    AddDecision,
    NoopDecision,
    UpdateDecision,
    apply_duplicate_guard,
    normalize_content,
)


def test_normalize_content():
    assert normalize_content("  Sarah is my   CO-FOUNDER. ") == "sarah is my co-founder"
    assert normalize_content("Sarah is my co-founder!") == "sarah is my co-founder"


def test_add_of_identical_content_becomes_noop(make_similar):
    similar = [make_similar("Sarah is my co-founder.", id="rec_1")]

    decision = apply_duplicate_guard(
        AddDecision(rationale="looks new"), "sarah is my co-founder", similar
    )

    assert isinstance(decision, NoopDecision)
    assert decision.existing_id == "rec_1"
    assert decision.note == "duplicate guard: identical content already stored"


def test_add_of_different_content_is_kept(make_similar):
    decision = AddDecision()
    assert apply_duplicate_guard(decision, "Sarah likes tea", [make_similar()]) is decision


def test_add_without_similar_is_kept():
    decision = AddDecision()
    assert apply_duplicate_guard(decision, "Sarah is my co-founder", []) is decision


def test_only_best_match_is_compared(make_similar):
    similar = [make_similar("Sarah likes tea", score=0.9), make_similar(score=0.7)]
    decision = AddDecision()
    assert apply_duplicate_guard(decision, "Sarah is my co-founder", similar) is decision


def test_non_add_decisions_pass_through(make_similar):
    decision = UpdateDecision(target_id="rec_1", strategy="append", new_content="x")
    assert apply_duplicate_guard(decision, "Sarah is my co-founder", [make_similar()]) is decision
