# scripts/smoke.py
"""
Live smoke test for the musicdict generation pipeline.

Runs the real completion provider and the real encyclopedia lookup, so it
needs credentials in `.env` (CLOUDFLARE_ACCOUNT_ID / CLOUDFLARE_API_TOKEN).

Usage
-----
1. Generate the default term list:
    $ uv run python scripts/smoke.py

2. Generate, then enhance, a single term:
    $ uv run python scripts/smoke.py --term "The Magic Flute" --type opera --enhance
"""

import argparse
import logging
import sys
import traceback
from pathlib import Path

from dotenv import load_dotenv

from musicdict.agents.enhancer_agent import EntryEnhancer
from musicdict.agents.generator_agent import EntryGenerator
from musicdict.core.contracts.entry import DictionaryEntry, GenerationRequest
from musicdict.language.detector import LanguageDetector
from musicdict.llm.client import LLMClient
from musicdict.references.wikipedia import WikipediaLookup

# --------------------------------------------------------------------------- #
# Environment Setup
# --------------------------------------------------------------------------- #
env_path = Path(".env")
if env_path.exists():
    load_dotenv(env_path)
    print("✅ Loaded .env file")
else:
    print("⚠️  Warning: No .env file found! Completion calls will fail without keys.")

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

# --------------------------------------------------------------------------- #
# Test Data
# --------------------------------------------------------------------------- #
DEFAULT_TERMS = [
    GenerationRequest(term="piano", type="instrument"),
    GenerationRequest(term="allegro", type="tempo"),
    GenerationRequest(term="The Magic Flute", type="opera"),
    GenerationRequest(term="langsam", type="tempo"),
]


def _print_entry(entry: DictionaryEntry) -> None:
    wiki = entry.references.wikipedia
    print(f"\n📖 {entry.term} ({entry.type}) v{entry.version} id={entry.id}")
    print(f"   concise : {entry.definition.concise}")
    print(f"   quality : {entry.quality_score.overall} ({entry.quality_score.confidence_level})")
    print(f"   source  : {entry.metadata.source_language}")
    print(f"   wiki    : {wiki.url if wiki else '-'}")


def main() -> None:
    """Execute the smoke test workflow."""
    parser = argparse.ArgumentParser(description="Run musicdict smoke test")
    parser.add_argument("--term", "-t", type=str, help="Single term to generate")
    parser.add_argument("--type", dest="term_type", default="general", help="Term type")
    parser.add_argument("--enhance", action="store_true", help="Run one enhancement pass")
    args = parser.parse_args()

    llm = LLMClient.from_env()
    lookup = WikipediaLookup.from_env()
    generator = EntryGenerator(llm, lookup)

    requests = (
        [GenerationRequest(term=args.term, type=args.term_type)] if args.term else DEFAULT_TERMS
    )
    detector = LanguageDetector()
    for req in requests:
        detection = detector.detect(req.term)
        print(f"🔎 {req.term!r}: {detection.language} ({detection.confidence})")

    try:
        print("\n... Invoking generate_many() ...")
        rows = generator.generate_many(requests)
    except Exception as exc:
        print(f"\n❌ Pipeline Crashed: {exc}")
        traceback.print_exc()
        return

    print("\n" + "=" * 60)
    print(f"✅ {sum(r.ok for r in rows)}/{len(rows)} entries generated")
    print("=" * 60)

    for row in rows:
        if row.entry is None:
            print(f"\n❌ {row.term}: {row.error}")
            continue
        _print_entry(row.entry)
        if args.enhance:
            _print_entry(EntryEnhancer(llm, lookup).enhance(row.entry))


if __name__ == "__main__":
    main()
