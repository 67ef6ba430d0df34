"""Scan Orchestrator layer.

Dispatches one prompt to every active provider concurrently with:
  - Independent per-provider timeouts
  - Per-provider token-bucket RPM limits
  - Single designated fallback provider when every parallel call fails
  - Uniform PromptScan / ScanOutcome results
"""
