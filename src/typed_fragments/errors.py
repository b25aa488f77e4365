"""Exceptions raised while generating models."""


class ConfigurationError(ValueError):
    """Invalid configuration value or an unusable field/model name."""


class NamingCollisionError(ValueError):
    """Two structurally different shapes were assigned the same qualified name."""

    def __init__(self, name: str, scope: str) -> None:
        super().__init__(
            f"Model name '{name}' in scope '{scope}' is already used by a different shape"
        )
        self.name = name
        self.scope = scope
