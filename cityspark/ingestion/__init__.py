"""
Ingestion layer: tabular loaders for the analytics context.

Submodules:
  loader  CSV / JSON / Parquet readers for district indicators and
          long-format migration series, plus build_context() which freezes
          them into the shared AnalyticsContext.

Data placement (see config/default.toml [data]):
  districts_file   district_id, name, <indicator columns>, migration_rate
  migration_file   district_id, year, value
"""
