"""HTTP blueprints, one package per area of the back office."""
