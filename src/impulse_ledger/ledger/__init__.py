"""Room ledger and membership services.

Each module owns one concern and talks to the store only through the
repositories in :mod:`impulse_ledger.db`:

- :mod:`~impulse_ledger.ledger.admission`   room creation, joins and creator settings
- :mod:`~impulse_ledger.ledger.membership`  membership checks and the leave flow
- :mod:`~impulse_ledger.ledger.entries`     append, undo and history
- :mod:`~impulse_ledger.ledger.aggregator`  weekly standings and leaderboard
- :mod:`~impulse_ledger.ledger.focus`       weekly focus areas
- :mod:`~impulse_ledger.ledger.recorder`    best-effort audit events
- :mod:`~impulse_ledger.ledger.suggestions` room code suggestions
"""
