from .common import current_pid, generate_nonce

__all__ = ["current_pid", "generate_nonce"]
