# ==============================================
# Relationship Inference Engine
# ==============================================
#
# Package Structure (4 Topics + Orchestrator):
#
# relinfer/
# ├── normalization/    # Topic 1: Table payloads → typed values, naming
# ├── analysis/         # Topic 2: Statistics, candidates, scoring, reconciliation
# ├── planning/         # Topic 3: FK placement directives + DDL preview
# ├── storage/          # Topic 4: Source adapters + MySQL schema apply
# ├── engine.py         # Orchestrator (one analysis run)
# ├── report.py         # AnalysisReport (output contract)
# ├── progress.py       # Progress sinks
# ├── errors.py         # Error taxonomy
# ├── config.py         # Configuration management
# └── cli.py            # Command line entry point
#
# ==============================================

__version__ = "0.1.0"
