"""Consistency summaries over journal entries and tasbeeh sessions."""
