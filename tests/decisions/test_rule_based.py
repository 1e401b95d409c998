"""Tests for the rule-based decision maker."""

import pytest

from journal_memory.decisions import RuleBasedDecisionMaker


@pytest.fixture
def decider():
    return RuleBasedDecisionMaker()


@pytest.mark.asyncio
async def test_nothing_similar_adds(decider, make_candidate):
    proposal = await decider.decide(make_candidate(), [])
    assert proposal.operation == "ADD"


@pytest.mark.asyncio
async def test_nothing_similar_trivial_is_noop(decider, make_candidate):
    proposal = await decider.decide(make_candidate("Said hi", importance="trivial"), [])
    assert proposal.operation == "NOOP"


@pytest.mark.asyncio
async def test_equivalent_is_noop(decider, make_candidate, make_similar):
    identical = await decider.decide(
        make_candidate("Sarah is my co-founder."), [make_similar(score=0.7, id="rec_1")]
    )
    near = await decider.decide(
        make_candidate("Sarah is my cofounder"), [make_similar(score=0.97, id="rec_1")]
    )

    assert identical.operation == "NOOP"
    assert identical.target_id == "rec_1"
    assert near.operation == "NOOP"


@pytest.mark.asyncio
async def test_deletion_request(decider, make_candidate, make_similar):
    proposal = await decider.decide(
        make_candidate("Forget about Sarah", is_deletion_request=True),
        [make_similar(id="rec_1")],
    )

    assert proposal.operation == "DELETE"
    assert proposal.target_id == "rec_1"
    assert proposal.hard_delete is True


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "content",
    ["Sarah left Notion", "Sarah moved to Lisbon", "Sarah no longer works with me"],
)
async def test_change_cue_supersedes(content, decider, make_candidate, make_similar):
    proposal = await decider.decide(
        make_candidate(content), [make_similar("Sarah works at Notion", score=0.8, id="rec_1")]
    )

    assert proposal.operation == "UPDATE"
    assert proposal.merge_strategy == "supersede"
    assert proposal.target_id == "rec_1"
    assert proposal.new_content == content


@pytest.mark.asyncio
async def test_historical_candidate_supersedes(decider, make_candidate, make_similar):
    proposal = await decider.decide(
        make_candidate("Sarah was my co-founder", is_historical=True),
        [make_similar(score=0.85)],
    )
    assert proposal.merge_strategy == "supersede"


@pytest.mark.asyncio
async def test_correction_cue_replaces(decider, make_candidate, make_similar):
    proposal = await decider.decide(
        make_candidate("Actually, Sarah is my co-founder and CTO"),
        [make_similar(score=0.6)],
    )

    assert proposal.operation == "UPDATE"
    assert proposal.merge_strategy == "replace"


@pytest.mark.asyncio
async def test_same_name_high_similarity_appends(decider, make_candidate, make_similar):
    proposal = await decider.decide(
        make_candidate("Sarah loves bouldering"), [make_similar(score=0.8)]
    )

    assert proposal.operation == "UPDATE"
    assert proposal.merge_strategy == "append"


@pytest.mark.asyncio
async def test_cues_need_a_related_record(decider, make_candidate, make_similar):
    """A change cue about an unrelated record is just new information."""
    proposal = await decider.decide(
        make_candidate("Tom left his keys at home", name="Tom"),
        [make_similar(score=0.55)],
    )
    assert proposal.operation == "ADD"


@pytest.mark.asyncio
async def test_cue_matching_uses_word_boundaries(decider, make_candidate, make_similar):
    """'leftover' is not 'left'."""
    proposal = await decider.decide(
        make_candidate("Sarah brought leftover pizza"), [make_similar(score=0.6)]
    )
    assert proposal.operation == "ADD"


@pytest.mark.asyncio
async def test_same_name_low_similarity_adds(decider, make_candidate, make_similar):
    proposal = await decider.decide(make_candidate("Sarah has a dog"), [make_similar(score=0.5)])
    assert proposal.operation == "ADD"
