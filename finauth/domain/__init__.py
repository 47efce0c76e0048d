"""Domain layer: entities, value objects, errors and ports."""
