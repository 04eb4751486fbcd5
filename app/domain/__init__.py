from app.domain.commit_operations import commit_ops

__all__ = [
    "commit_ops",
]
