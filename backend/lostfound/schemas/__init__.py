from marshmallow import ValidationError


def first_error(err: ValidationError) -> str:
    """Flatten marshmallow's error dict into the first human-readable message."""
    messages = err.messages
    while isinstance(messages, dict) and messages:
        messages = next(iter(messages.values()))
    while isinstance(messages, list) and messages:
        messages = messages[0]
        if isinstance(messages, dict):
            return first_error(ValidationError(messages))
    return str(messages) if messages else "Invalid input"
