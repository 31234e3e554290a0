"""Domain layer: entities, interfaces and services of the breathing engine."""
