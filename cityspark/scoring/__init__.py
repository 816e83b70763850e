"""
Scoring engine: converts raw district indicators into a composite imbalance
score, a population rank, and a risk category.

Modules
-------
ranges      : compute_ranges(): population (min, max) per indicator; the
              immutable normalisation context.
scorer      : normalize() + validate_weights() + classify_risk() +
              score_district(). Pure functions, no I/O.
ranker      : rank_districts() + score_population() + top_n() +
              national_average().
correlation : correlation() + scatter_points(). Pearson r between
              composite scores and observed migration rates.
"""
