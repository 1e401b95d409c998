import json
import logging
from datetime import datetime
from typing import List, Optional, Sequence

from casual_llm import LLMProvider, SystemMessage, UserMessage

from journal_memory.errors import MalformedCandidate
from journal_memory.extractors.prompts import CANDIDATE_EXTRACTION_PROMPT, KNOWN_ENTITIES_HINT
from journal_memory.models import CandidateFact
from journal_memory.utils.temporal import normalize_candidate_dates

logger = logging.getLogger(__name__)


class LLMCandidateExtractor:
    """Extracts candidate facts from journal notes."""

    def __init__(
        self,
        llm_provider: LLMProvider,
        prompt: Optional[str] = None,
        min_confidence: float = 0.5,
    ):
        self.prompt = prompt or CANDIDATE_EXTRACTION_PROMPT
        self.llm_provider = llm_provider
        self.min_confidence = min_confidence
        self.malformed_count = 0

    def _build_system_prompt(self, hints: Sequence[str], now: datetime) -> str:
        known = KNOWN_ENTITIES_HINT.format(names=", ".join(hints)) if hints else ""
        return self.prompt.format(
            today_natural=now.strftime("%A, %B %d, %Y"),
            isonow=now.isoformat(),
            known_entities=known,
        )

    async def extract(self, text: str, hints: Sequence[str] = ()) -> List[CandidateFact]:
        candidates: List[CandidateFact] = []
        now = datetime.now()

        llm_messages = [
            SystemMessage(content=self._build_system_prompt(hints, now)),
            UserMessage(content=f'Note: "{text}"'),
        ]

        try:
            logger.debug("Extracting candidates")
            response = await self.llm_provider.chat(
                messages=llm_messages, response_format="json", temperature=0.2
            )
            response_data = json.loads(response.content)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse candidate extraction JSON: {e}")
            return candidates

        if not isinstance(response_data, dict):
            logger.error(f"Unexpected extraction payload type: {type(response_data).__name__}")
            return candidates

        raw_items = response_data.get("candidates") or []
        if not isinstance(raw_items, list):
            logger.error("Extraction payload 'candidates' is not a list")
            return candidates

        for raw in raw_items:
            if not isinstance(raw, dict):
                self.malformed_count += 1
                logger.warning(f"Skipping malformed candidate: {raw!r}")
                continue

            # Normalize dates in the candidate before validation
            item = normalize_candidate_dates(raw, now)

            try:
                candidate = CandidateFact.from_raw(item)
            except MalformedCandidate as e:
                self.malformed_count += 1
                logger.warning(f"Skipping malformed candidate: {e}")
                continue

            if candidate.confidence < self.min_confidence:
                logger.debug(
                    f"Dropping low-confidence candidate ({candidate.confidence:.2f}): "
                    f"{candidate.content[:50]}"
                )
                continue

            candidates.append(candidate)

        logger.info(f"Extracted {len(candidates)} candidates")

        return candidates
