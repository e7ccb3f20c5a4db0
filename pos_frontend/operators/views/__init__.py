from .session import OperatorSessionView

__all__ = [
    "OperatorSessionView",
]
