"""TaskPulse: spreadsheet task uploads turned into dashboard metrics."""
