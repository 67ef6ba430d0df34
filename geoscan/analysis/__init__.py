"""Mention Analyzer.

Rule-based pipeline for one raw provider answer:
  1. Brand lookup (case-insensitive substring)
  2. Structural ranking from list markers
  3. Market position and sentiment from the surrounding context
  4. Competitor lookup and ranking

Input:  RawAnswer text (from the Scan Orchestrator)
Output: AnalyzedResponse (durable unit of metrics history)
"""
