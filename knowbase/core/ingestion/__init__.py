"""
Source ingestion pipeline.

Submodules:
  - loaders: file bytes to clean text
  - tasks: process-sources, generate-embeddings and store steps
  - run_tracker: run queue, status and checkpoints
  - entrypoint: IngestionPipeline orchestrator
  - worker: asyncio worker pool executing queued runs
"""
