"""
Script to (re-)ingest the knowledge base without starting the server.
Usage: python ingest_knowledge.py [--reset]
"""
import argparse
import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

from rag.config import RAGConfig
from rag.pipeline import RAGPipeline


def ingest(pipeline: RAGPipeline, reset: bool = False) -> int:
    """Ingest the default knowledge base, clearing the collection first if asked."""
    if reset:
        print("Clearing existing vectors...")
        pipeline.vector_store.clear()

    print("Embedding and storing knowledge chunks...")
    count = asyncio.run(pipeline.ingest_knowledge())

    stats = pipeline.vector_store.get_stats()
    print(f"\nDone! Stored {count} chunks; collection '{stats['collection']}' "
          f"now has {stats['total_vectors']} total vectors")
    return count


def main(argv=None) -> int:
    load_dotenv()
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())

    parser = argparse.ArgumentParser(description="Ingest the knowledge base into the vector store.")
    parser.add_argument("--reset", action="store_true", help="Delete stored vectors before ingesting")
    args = parser.parse_args(argv)

    cfg = RAGConfig.from_env()
    pipeline = RAGPipeline.from_config(cfg)
    ingest(pipeline, reset=args.reset)
    return 0


if __name__ == "__main__":
    sys.exit(main())
