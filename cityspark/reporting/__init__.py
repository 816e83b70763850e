"""
cityspark.reporting: terminal formatting, flat-file export, and budget briefs.

This package only arranges engine and service outputs; it never computes a
score, forecast, or simulation itself.

Modules:
  formatters  ASCII terminal table formatters for Typer CLI commands.
  export      CSV / JSON / Parquet flat-file export helpers.
  brief       Rule-based budget brief assembly and text rendering.
"""
