"""Domain models and errors for survey risk assessment."""
