"""Clinical domain models, isolated from the analysis services."""
