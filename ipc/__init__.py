"""
Discord local IPC protocol helpers: opcodes, binary framing, message models,
error taxonomy, and reply validation.
"""
