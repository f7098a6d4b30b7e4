"""Banks on SQLite, a two-phase-commit payment gateway, idempotency cache and client retries."""