"""
LLM-based consolidation decisions.

Asks an LLM to choose ADD, UPDATE, DELETE or NOOP for a candidate given
its similar records. Output is parsed into a DecisionProposal; validation
happens downstream.
"""

import json
import logging
from typing import List, Optional

from casual_llm import LLMProvider, SystemMessage, UserMessage
from pydantic import ValidationError

from journal_memory.decisions.models import DecisionProposal, SimilarRecord
from journal_memory.decisions.prompts import (
    DECISION_SYSTEM_PROMPT,
    DECISION_USER_PROMPT,
    SIMILAR_RECORD_LINE,
)
from journal_memory.errors import InvalidDecision
from journal_memory.models import CandidateFact

logger = logging.getLogger(__name__)


class LLMDecisionMaker:
    """
    LLM-backed implementation of the DecisionMaker protocol.

    Makes exactly one LLM call per candidate. Transport failures propagate
    to the caller; unparseable output raises InvalidDecision.
    """

    def __init__(
        self, llm_provider: LLMProvider, model_name: str, system_prompt: Optional[str] = None
    ):
        """
        Initialize the decision maker.

        Args:
            llm_provider: LLM provider instance
            model_name: Name of the model (for logging)
            system_prompt: Optional custom system prompt (default: DECISION_SYSTEM_PROMPT)
        """
        self.llm_provider = llm_provider
        self.model_name = model_name
        self.system_prompt = system_prompt or DECISION_SYSTEM_PROMPT
        self.llm_call_count = 0
        self.llm_success_count = 0
        self.llm_failure_count = 0
        self.parse_failure_count = 0

        logger.info(
            f"LLMDecisionMaker initialized: model={model_name}, "
            f"custom_prompt={system_prompt is not None}"
        )

    def _build_prompt(self, candidate: CandidateFact, similar: List[SimilarRecord]) -> str:
        if similar:
            lines = "\n".join(
                SIMILAR_RECORD_LINE.format(
                    id=s.record_id,
                    score=s.similarity_score,
                    name=s.record.name,
                    memory_type=s.record.memory_type,
                    version=s.record.version,
                    importance=s.record.importance,
                    content=s.record.content,
                )
                for s in similar
            )
        else:
            lines = "(none)"

        return DECISION_USER_PROMPT.format(
            name=candidate.name,
            memory_type=candidate.memory_type,
            content=candidate.content,
            importance=candidate.importance,
            is_historical=candidate.is_historical,
            is_deletion_request=candidate.is_deletion_request,
            similar_records=lines,
        )

    async def _call_llm(self, prompt: str):
        self.llm_call_count += 1
        try:
            messages = [SystemMessage(content=self.system_prompt), UserMessage(content=prompt)]
            response = await self.llm_provider.chat(
                messages,
                response_format="json",
                temperature=0.1,
                max_tokens=300,
            )
            self.llm_success_count += 1
            return response
        except Exception:
            self.llm_failure_count += 1
            raise

    async def decide(
        self, candidate: CandidateFact, similar: List[SimilarRecord]
    ) -> DecisionProposal:
        response = await self._call_llm(self._build_prompt(candidate, similar))

        try:
            payload = json.loads(response.content)
            proposal = DecisionProposal.model_validate(payload)
        except (json.JSONDecodeError, ValidationError) as e:
            self.parse_failure_count += 1
            logger.warning(f"Unparseable decision from {self.model_name}: {e}")
            raise InvalidDecision(f"Unparseable decision: {e}") from e

        logger.debug(
            f"Decision for '{candidate.content[:50]}': {proposal.operation} "
            f"target={proposal.target_id} strategy={proposal.merge_strategy}\n"
            f"  Rationale: {proposal.rationale}"
        )

        return proposal

    def get_metrics(self) -> dict:
        """
        Get metrics about decision calls.

        Returns:
            Dictionary with call counts and success rates
        """
        metrics = {
            "decision_maker_llm_call_count": self.llm_call_count,
            "decision_maker_llm_success_count": self.llm_success_count,
            "decision_maker_llm_failure_count": self.llm_failure_count,
            "decision_maker_parse_failure_count": self.parse_failure_count,
        }

        if self.llm_call_count > 0:
            success_rate = (self.llm_success_count / self.llm_call_count) * 100
            metrics["decision_maker_llm_success_rate_percent"] = round(success_rate, 2)

        return metrics
