from gatehouse.domain.shared.model.entity import Entity


class Aggregate(Entity):
    """Consistency boundary root. Persisted and loaded as a whole."""
