"""
Journal Consolidation Example

Consolidates three journal notes about the same person and shows how the
record evolves: created, enriched, then superseded when things change.
"""

import asyncio

from casual_llm import ModelConfig, Provider, create_provider

from journal_memory import ConsolidationService, ConsolidationSettings, DuplicateSweeper
from journal_memory.decisions import RuleBasedDecisionMaker
from journal_memory.embeddings import OpenAIEmbedding
from journal_memory.extractors import LLMCandidateExtractor
from journal_memory.storage import InMemoryAuditLog, InMemoryRecordStore


async def main():
    print("=== Journal Consolidation Example ===\n")

    llm_provider = create_provider(ModelConfig(
        name="qwen2.5:7b-instruct",
        provider=Provider.OLLAMA,
        base_url="http://localhost:11434",
        temperature=0.2
    ))

    record_store = InMemoryRecordStore()
    audit_log = InMemoryAuditLog()

    service = ConsolidationService(
        extractor=LLMCandidateExtractor(llm_provider),
        decision_maker=RuleBasedDecisionMaker(),
        record_store=record_store,
        audit_log=audit_log,
        embedding=OpenAIEmbedding(model="text-embedding-3-small", dimensions=512),
        settings=ConsolidationSettings(max_workers=2),
    )

    notes = [
        "Had lunch with Sarah today. Still amazed she agreed to be my co-founder.",
        "Sarah dragged me to the climbing gym. She loves bouldering.",
        "Big news: Sarah left the company to start her own thing.",
    ]

    for i, note in enumerate(notes, 1):
        print(f"Note {i}: {note}")
        report = await service.consolidate_memories("user_1", note, source_note_id=f"note_{i}")
        for outcome in report.outcomes:
            strategy = f" ({outcome.merge_strategy})" if outcome.merge_strategy else ""
            print(f"  {outcome.operation}{strategy}: {outcome.content}")
        print()

    print("Active records:")
    for record in record_store.list_records("user_1", status="active"):
        print(f"  [{record.name}] v{record.version}: {record.content}")
        history = record_store.get_chain(record.id)[1:]
        for old in history:
            print(f"     was v{old.version}: {old.content}")

    print(f"\nAudit entries: {audit_log.count('user_1')}")

    sweep = await DuplicateSweeper(record_store, audit_log).consolidate("user_1")
    print(f"Duplicate pairs pending merge: {len(sweep.candidates)}")

    print("\n=== Example Complete ===")


if __name__ == "__main__":
    asyncio.run(main())
