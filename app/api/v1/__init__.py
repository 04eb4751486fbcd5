from app.api.v1 import github

__all__ = [
    "github",
]
