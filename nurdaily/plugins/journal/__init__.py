"""Daily journal entries: models, EntryStore and API."""
