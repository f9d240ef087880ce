"""Administration of users, categories and buildings (copropriétés)."""
